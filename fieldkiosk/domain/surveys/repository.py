"""Survey repository - Database operations for surveys"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Employee, Survey


class SurveyRepository:
    """Repository for survey database operations"""

    @staticmethod
    def get_surveys(db: Session, employee_id: Optional[str] = None) -> list[Survey]:
        query = db.query(Survey)
        if employee_id:
            query = query.filter(Survey.employee_id == employee_id)
        return query.order_by(Survey.timestamp.desc()).all()

    @staticmethod
    def get_survey(db: Session, survey_id: str) -> Optional[Survey]:
        return db.query(Survey).filter(Survey.id == survey_id).first()

    @staticmethod
    def get_duplicates(db: Session, reviewed: Optional[bool] = None) -> list[Survey]:
        query = db.query(Survey).filter(Survey.is_duplicate.is_(True))
        if reviewed is not None:
            query = query.filter(Survey.duplicate_reviewed.is_(reviewed))
        return query.order_by(Survey.timestamp.desc()).all()

    @staticmethod
    def delete_survey(db: Session, survey: Survey) -> None:
        db.delete(survey)
        db.commit()

    @staticmethod
    def get_employee(db: Session, employee_id: str) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id).first()
