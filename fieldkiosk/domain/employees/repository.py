"""Employee repository - Database operations for employees and onboarding"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import CompensationSettings, Employee, OnboardingData, Schedule


class EmployeeRepository:
    """Repository for employee database operations"""

    @staticmethod
    def get_employees(db: Session) -> list[Employee]:
        return db.query(Employee).order_by(Employee.created_at.desc()).all()

    @staticmethod
    def get_employee(db: Session, employee_id: str) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id).first()

    @staticmethod
    def get_employee_by_email(db: Session, email: str) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.email == email).first()

    @staticmethod
    def create_employee(db: Session, **employee_data) -> Employee:
        employee = Employee(**employee_data)
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def update_employee(db: Session, employee: Employee, **updates) -> Employee:
        for key, value in updates.items():
            if hasattr(employee, key):
                setattr(employee, key, value)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def delete_future_schedules(db: Session, employee_id: str, after_date: str) -> int:
        deleted = (
            db.query(Schedule)
            .filter(Schedule.employee_id == employee_id, Schedule.date > after_date)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

    @staticmethod
    def get_onboarding(db: Session, employee_id: str) -> Optional[OnboardingData]:
        return db.query(OnboardingData).filter(OnboardingData.employee_id == employee_id).first()

    @staticmethod
    def upsert_onboarding(db: Session, employee_id: str, **values) -> OnboardingData:
        onboarding = db.query(OnboardingData).filter(OnboardingData.employee_id == employee_id).first()
        if onboarding is None:
            onboarding = OnboardingData(employee_id=employee_id)
            db.add(onboarding)
        for key, value in values.items():
            setattr(onboarding, key, value)
        db.commit()
        db.refresh(onboarding)
        return onboarding

    @staticmethod
    def get_compensation_settings(db: Session) -> Optional[CompensationSettings]:
        return db.query(CompensationSettings).order_by(CompensationSettings.id.asc()).first()

    @staticmethod
    def save_compensation_settings(db: Session, **values) -> CompensationSettings:
        settings = db.query(CompensationSettings).order_by(CompensationSettings.id.asc()).first()
        if settings is None:
            settings = CompensationSettings()
            db.add(settings)
        for key, value in values.items():
            setattr(settings, key, value)
        db.commit()
        db.refresh(settings)
        return settings
