"""Scheduling service - shifts and time-off requests"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Schedule, TimeOffRequest, generate_id, utcnow
from .repository import SchedulingRepository
from .schemas import ScheduleCreate, TimeOffRequestCreate, TimeOffReview

logger = logging.getLogger(__name__)


class SchedulingService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def get_schedules(self, employee_id: Optional[str] = None) -> list[Schedule]:
        return self.repo.get_schedules(self.db, employee_id)

    def add_schedule(self, data: ScheduleCreate) -> Schedule:
        return self.add_multiple_schedules([data])[0]

    def add_multiple_schedules(self, items: list[ScheduleCreate]) -> list[Schedule]:
        if not items:
            raise HTTPException(status_code=400, detail="No schedules provided")
        rows = []
        for item in items:
            row = item.model_dump()
            row["id"] = row.get("id") or generate_id()
            rows.append(row)
        schedules = self.repo.create_schedules(self.db, rows)
        logger.info(f"📅 Added {len(schedules)} schedule(s)")
        return schedules

    def get_time_off_requests(self, employee_id: Optional[str] = None) -> list[TimeOffRequest]:
        return self.repo.get_time_off_requests(self.db, employee_id)

    def add_time_off_request(self, data: TimeOffRequestCreate) -> TimeOffRequest:
        values = data.model_dump()
        values["id"] = values.get("id") or generate_id()
        values["status"] = "pending"
        values["requested_at"] = utcnow()
        request = self.repo.create_time_off_request(self.db, **values)
        logger.info(f"🌴 Time off requested by {data.employee_id}: {data.start_date} to {data.end_date}")
        return request

    def review_time_off_request(self, request_id: str, data: TimeOffReview) -> TimeOffRequest:
        request = self.repo.get_time_off_request(self.db, request_id)
        if not request:
            raise HTTPException(status_code=404, detail="Time off request not found")
        request = self.repo.update_time_off_request(
            self.db,
            request,
            status=data.status,
            reviewed_at=utcnow(),
            reviewed_by=data.reviewed_by,
        )
        logger.info(f"✅ Time off request {request_id} {data.status}")
        return request
