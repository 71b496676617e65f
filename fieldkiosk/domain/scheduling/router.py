"""Scheduling router - FastAPI endpoints for schedules and time off"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...webhook_security import require_api_key
from .schemas import (
    ScheduleCreate,
    ScheduleResponse,
    TimeOffRequestCreate,
    TimeOffRequestResponse,
    TimeOffReview,
)
from .service import SchedulingService

router = APIRouter(tags=["Scheduling"], dependencies=[Depends(require_api_key)])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


@router.get("/schedules", response_model=list[ScheduleResponse])
async def get_schedules(
    employee_id: Optional[str] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.get_schedules(employee_id)


@router.post("/schedules", response_model=ScheduleResponse, status_code=201)
async def add_schedule(data: ScheduleCreate, service: SchedulingService = Depends(get_scheduling_service)):
    return service.add_schedule(data)


@router.post("/schedules/bulk", response_model=list[ScheduleResponse], status_code=201)
async def add_multiple_schedules(
    data: list[ScheduleCreate],
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.add_multiple_schedules(data)


@router.get("/time-off-requests", response_model=list[TimeOffRequestResponse])
async def get_time_off_requests(
    employee_id: Optional[str] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.get_time_off_requests(employee_id)


@router.post("/time-off-requests", response_model=TimeOffRequestResponse, status_code=201)
async def add_time_off_request(
    data: TimeOffRequestCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.add_time_off_request(data)


@router.post("/time-off-requests/{request_id}/review", response_model=TimeOffRequestResponse)
async def review_time_off_request(
    request_id: str,
    data: TimeOffReview,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.review_time_off_request(request_id, data)
