"""Time clock service - clock in/out with GPS store matching"""

import logging
from typing import Any, Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...integrations.store_locations import find_nearest_store
from ...models import TimeEntry, generate_id, utcnow
from ...shared.exports import time_entries_to_csv
from ...storage.failsafe import TIME_ENTRIES, FailsafeResult, FailsafeStorage, cloud_upserter
from ...storage.reconcile import merge_by_id
from .repository import TimeEntryRepository
from .schemas import ClockInRequest, ForceClockOutRequest, InactivityLogCreate

logger = logging.getLogger(__name__)


class TimeClockService:
    """Service layer for time clock business logic"""

    def __init__(self, db: Session, local_db: Session):
        self.db = db
        self.local_db = local_db
        self.repo = TimeEntryRepository()
        self.storage = FailsafeStorage(local_db, {TIME_ENTRIES: cloud_upserter(db, TimeEntry)})

    def _save(self, record: dict) -> FailsafeResult:
        result = self.storage.save(TIME_ENTRIES, TimeEntry.normalize(record))
        if not result.success:
            logger.error(f"❌ Time entry {record['id']} could not be stored: {result.error}")
            raise HTTPException(status_code=500, detail=f"Time entry could not be saved: {result.error}")
        return result

    def _cloud_entries(self, employee_id: Optional[str] = None) -> list[dict]:
        try:
            return [e.to_dict() for e in self.repo.get_time_entries(self.db, employee_id)]
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Cloud unavailable, listing local time entries only: {e}")
            return []

    def list_time_entries(self, employee_id: Optional[str] = None) -> list[dict]:
        """Local and cloud copies merged by id (cloud wins), latest clock-in first"""
        local = self.storage.local_records(TIME_ENTRIES)
        if employee_id:
            local = [e for e in local if e.get("employee_id") == employee_id]
        return merge_by_id(local, self._cloud_entries(employee_id), sort_key="clock_in")

    def get_open_entry(self, employee_id: str) -> Optional[dict]:
        return next((e for e in self.list_time_entries(employee_id) if not e.get("clock_out")), None)

    def get_time_entry(self, time_entry_id: str) -> dict:
        try:
            entry = self.repo.get_time_entry(self.db, time_entry_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Cloud unavailable while loading time entry {time_entry_id}: {e}")
            entry = None
        if entry is not None:
            return entry.to_dict()
        local = self.storage.get(TIME_ENTRIES, time_entry_id)
        if local is None:
            raise HTTPException(status_code=404, detail="Time entry not found")
        return local

    def clock_in(self, data: ClockInRequest) -> FailsafeResult:
        if self.get_open_entry(data.employee_id) is not None:
            raise HTTPException(status_code=409, detail="Employee is already clocked in")

        record: dict[str, Any] = {
            "id": data.id or generate_id(),
            "employee_id": data.employee_id,
            "clock_in": utcnow(),
            "store": data.store,
            "photo_uri": data.photo_uri,
            "is_active_in_kiosk": True,
            "location_verified": False,
        }

        if data.gps_coordinates is not None:
            record["gps_coordinates"] = data.gps_coordinates.model_dump()
            match = find_nearest_store(data.gps_coordinates.latitude, data.gps_coordinates.longitude)
            if match is not None:
                store, distance = match
                record.update(
                    {
                        "store": record["store"] or store.store_type,
                        "store_name": store.store_name,
                        "store_number": store.store_number,
                        "store_address": store.full_address,
                        "location_verified": True,
                        "distance_from_store": round(distance),
                    }
                )

        logger.info(f"⏰ Clock in: employee {data.employee_id} at {record.get('store_name') or record['store']}")
        return self._save(record)

    def clock_out(self, employee_id: str) -> FailsafeResult:
        entry = self.get_open_entry(employee_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="No active clock-in found")

        logger.info(f"⏰ Clock out: employee {employee_id}, entry {entry['id']}")
        return self._save({**entry, "clock_out": utcnow(), "is_active_in_kiosk": False})

    def set_kiosk_active(self, employee_id: str, is_active: bool) -> FailsafeResult:
        entry = self.get_open_entry(employee_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="No active clock-in found")
        return self._save({**entry, "is_active_in_kiosk": is_active})

    def force_clock_out(self, time_entry_id: str, data: ForceClockOutRequest) -> FailsafeResult:
        """Admin clock-out of an idle employee; leaves an inactivity log behind"""
        entry = self.storage.get(TIME_ENTRIES, time_entry_id) or self.get_time_entry(time_entry_id)
        if entry.get("clock_out"):
            raise HTTPException(status_code=400, detail="Time entry is already clocked out")

        result = self._save({**entry, "clock_out": utcnow(), "is_active_in_kiosk": False})
        self.log_inactivity(
            InactivityLogCreate(
                employee_id=entry["employee_id"],
                time_entry_id=time_entry_id,
                last_activity_at=entry.get("clock_in"),
                inactive_duration_minutes=0,
                action_taken="force_clocked_out",
                admin_id=data.admin_id,
                notes=data.reason or "Force clocked out by admin",
            )
        )
        logger.warning(f"⚠️ Employee {entry['employee_id']} force clocked out by admin {data.admin_id}")
        return result

    def log_inactivity(self, data: InactivityLogCreate) -> dict:
        log = self.repo.create_inactivity_log(self.db, **data.model_dump())
        logger.info(f"💤 Inactivity logged for employee {data.employee_id} ({data.inactive_duration_minutes} min)")
        return log.to_dict()

    def get_inactivity_logs(self, employee_id: Optional[str] = None, limit: int = 100) -> list[dict]:
        return [log.to_dict() for log in self.repo.get_inactivity_logs(self.db, employee_id, limit)]

    def export_time_entries_csv(self, employee_id: Optional[str] = None) -> StreamingResponse:
        entries = self.list_time_entries(employee_id)
        try:
            employees = {e.id: e.to_dict() for e in self.repo.get_employees(self.db)}
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Exporting time entries without employee details: {e}")
            employees = {}

        filename = f"time_entries_export_{utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"✅ CSV export: {filename} ({len(entries)} time entries)")
        return StreamingResponse(
            iter([time_entries_to_csv(entries, employees)]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )
