"""Scheduling repository - Database operations for schedules and time off"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Schedule, TimeOffRequest


class SchedulingRepository:
    @staticmethod
    def get_schedules(db: Session, employee_id: Optional[str] = None) -> list[Schedule]:
        query = db.query(Schedule)
        if employee_id:
            query = query.filter(Schedule.employee_id == employee_id)
        return query.order_by(Schedule.date.asc(), Schedule.start_time.asc()).all()

    @staticmethod
    def create_schedules(db: Session, rows: list[dict]) -> list[Schedule]:
        schedules = [Schedule(**row) for row in rows]
        db.add_all(schedules)
        db.commit()
        for schedule in schedules:
            db.refresh(schedule)
        return schedules

    @staticmethod
    def get_time_off_requests(db: Session, employee_id: Optional[str] = None) -> list[TimeOffRequest]:
        query = db.query(TimeOffRequest)
        if employee_id:
            query = query.filter(TimeOffRequest.employee_id == employee_id)
        return query.order_by(TimeOffRequest.requested_at.desc()).all()

    @staticmethod
    def get_time_off_request(db: Session, request_id: str) -> Optional[TimeOffRequest]:
        return db.query(TimeOffRequest).filter(TimeOffRequest.id == request_id).first()

    @staticmethod
    def create_time_off_request(db: Session, **values) -> TimeOffRequest:
        request = TimeOffRequest(**values)
        db.add(request)
        db.commit()
        db.refresh(request)
        return request

    @staticmethod
    def update_time_off_request(db: Session, request: TimeOffRequest, **updates) -> TimeOffRequest:
        for key, value in updates.items():
            setattr(request, key, value)
        db.commit()
        db.refresh(request)
        return request
