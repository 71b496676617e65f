"""Time clock repository - Database operations for time entries"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Employee, InactivityLog, TimeEntry


class TimeEntryRepository:
    """Repository for time entry database operations"""

    @staticmethod
    def get_time_entries(db: Session, employee_id: Optional[str] = None) -> list[TimeEntry]:
        query = db.query(TimeEntry)
        if employee_id:
            query = query.filter(TimeEntry.employee_id == employee_id)
        return query.order_by(TimeEntry.clock_in.desc()).all()

    @staticmethod
    def get_time_entry(db: Session, time_entry_id: str) -> Optional[TimeEntry]:
        return db.query(TimeEntry).filter(TimeEntry.id == time_entry_id).first()

    @staticmethod
    def get_open_entry(db: Session, employee_id: str) -> Optional[TimeEntry]:
        return (
            db.query(TimeEntry)
            .filter(TimeEntry.employee_id == employee_id, TimeEntry.clock_out.is_(None))
            .order_by(TimeEntry.clock_in.desc())
            .first()
        )

    @staticmethod
    def get_employees(db: Session) -> list[Employee]:
        return db.query(Employee).all()

    @staticmethod
    def create_inactivity_log(db: Session, **values) -> InactivityLog:
        log = InactivityLog(**values)
        db.add(log)
        db.commit()
        db.refresh(log)
        return log

    @staticmethod
    def get_inactivity_logs(
        db: Session, employee_id: Optional[str] = None, limit: int = 100
    ) -> list[InactivityLog]:
        query = db.query(InactivityLog)
        if employee_id:
            query = query.filter(InactivityLog.employee_id == employee_id)
        return query.order_by(InactivityLog.detected_at.desc()).limit(limit).all()
