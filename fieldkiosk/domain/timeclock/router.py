"""Time clock router - FastAPI endpoints for clock in/out"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...local_database import get_local_db
from ...storage.failsafe import FailsafeResult
from ...webhook_security import require_api_key
from .schemas import (
    ClockInRequest,
    ClockOutRequest,
    ForceClockOutRequest,
    InactivityLogCreate,
    InactivityLogResponse,
    KioskActiveUpdate,
    TimeEntryResponse,
    TimeEntrySaveResponse,
)
from .service import TimeClockService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time-entries", tags=["Time Clock"], dependencies=[Depends(require_api_key)])


def get_time_clock_service(
    db: Session = Depends(get_db),
    local_db: Session = Depends(get_local_db),
) -> TimeClockService:
    """Dependency injection for TimeClockService"""
    return TimeClockService(db, local_db)


def _save_response(result: FailsafeResult) -> TimeEntrySaveResponse:
    return TimeEntrySaveResponse(
        success=result.success,
        time_entry=TimeEntryResponse(**result.data) if result.data else None,
        synced=result.synced,
        error=result.error,
    )


@router.post("/clock-in", response_model=TimeEntrySaveResponse, status_code=201)
async def clock_in(data: ClockInRequest, service: TimeClockService = Depends(get_time_clock_service)):
    return _save_response(service.clock_in(data))


@router.post("/clock-out", response_model=TimeEntrySaveResponse)
async def clock_out(data: ClockOutRequest, service: TimeClockService = Depends(get_time_clock_service)):
    return _save_response(service.clock_out(data.employee_id))


@router.post("/kiosk-status", response_model=TimeEntrySaveResponse)
async def set_kiosk_active(data: KioskActiveUpdate, service: TimeClockService = Depends(get_time_clock_service)):
    """Flag whether the employee is currently on the kiosk screen"""
    return _save_response(service.set_kiosk_active(data.employee_id, data.is_active))


@router.get("", response_model=list[TimeEntryResponse])
async def list_time_entries(
    employee_id: Optional[str] = Query(None),
    service: TimeClockService = Depends(get_time_clock_service),
):
    return service.list_time_entries(employee_id)


@router.get("/active/{employee_id}", response_model=Optional[TimeEntryResponse])
async def get_open_entry(employee_id: str, service: TimeClockService = Depends(get_time_clock_service)):
    return service.get_open_entry(employee_id)


@router.get("/export")
async def export_time_entries(
    employee_id: Optional[str] = Query(None),
    service: TimeClockService = Depends(get_time_clock_service),
):
    return service.export_time_entries_csv(employee_id)


@router.get("/inactivity", response_model=list[InactivityLogResponse])
async def get_inactivity_logs(
    employee_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    service: TimeClockService = Depends(get_time_clock_service),
):
    return service.get_inactivity_logs(employee_id, limit)


@router.post("/inactivity", response_model=InactivityLogResponse, status_code=201)
async def log_inactivity(data: InactivityLogCreate, service: TimeClockService = Depends(get_time_clock_service)):
    return service.log_inactivity(data)


@router.get("/{time_entry_id}", response_model=TimeEntryResponse)
async def get_time_entry(time_entry_id: str, service: TimeClockService = Depends(get_time_clock_service)):
    return service.get_time_entry(time_entry_id)


@router.post("/{time_entry_id}/force-clock-out", response_model=TimeEntrySaveResponse)
async def force_clock_out(
    time_entry_id: str,
    data: ForceClockOutRequest,
    service: TimeClockService = Depends(get_time_clock_service),
):
    return _save_response(service.force_clock_out(time_entry_id, data))
