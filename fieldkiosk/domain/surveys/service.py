"""Survey service - offline-first survey capture and listing"""

import logging
from typing import Any, Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Survey, generate_id, utcnow
from ...shared.exports import surveys_to_csv
from ...shared.validators import generate_employee_alias
from ...storage.failsafe import SURVEYS, FailsafeResult, FailsafeStorage, cloud_upserter
from ...storage.local_store import CURRENT_USER_KEY
from ...storage.reconcile import merge_by_id
from ...storage.sync_log import enqueue_outbound, remove_outbound_for
from .repository import SurveyRepository
from .schemas import SurveyCreate, SurveySyncStatusUpdate

logger = logging.getLogger(__name__)


class SurveyService:
    """Service layer for survey business logic"""

    def __init__(self, db: Session, local_db: Session):
        self.db = db
        self.local_db = local_db
        self.repo = SurveyRepository()
        self.storage = FailsafeStorage(local_db, {SURVEYS: cloud_upserter(db, Survey)})

    def _resolve_alias(self, employee_id: str) -> Optional[str]:
        current_user = self.storage.kv.get(CURRENT_USER_KEY)
        if current_user and current_user.get("id") == employee_id:
            return generate_employee_alias(current_user.get("first_name"), current_user.get("last_name"))
        try:
            employee = self.repo.get_employee(self.db, employee_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Could not load employee {employee_id} for alias: {e}")
            return None
        if employee is None:
            return None
        return employee.alias or generate_employee_alias(employee.first_name, employee.last_name)

    def add_survey(self, data: SurveyCreate) -> FailsafeResult:
        """Save locally, push to cloud when possible, queue the CRM hand-off"""
        payload = data.model_dump()
        payload["id"] = payload.get("id") or generate_id()
        payload["timestamp"] = payload.get("timestamp") or utcnow()
        if not payload.get("employee_alias"):
            payload["employee_alias"] = self._resolve_alias(data.employee_id)

        record = Survey.normalize(payload)
        logger.info(f"📥 Saving {record['category']} survey {record['id']} for employee {record['employee_id']}")

        result = self.storage.save(SURVEYS, record)
        if not result.success:
            logger.error(f"❌ Survey {record['id']} could not be stored: {result.error}")
            raise HTTPException(status_code=500, detail=f"Survey could not be saved: {result.error}")

        try:
            enqueue_outbound(self.local_db, "survey", record["id"], record)
            if record["category"] == "appointment" and record.get("appointment"):
                enqueue_outbound(self.local_db, "appointment", record["id"], record)
        except SQLAlchemyError as e:
            self.local_db.rollback()
            logger.error(f"❌ Failed to queue survey {record['id']} for CRM sync: {e}")
            result.error = "Survey saved but could not be queued for CRM sync"

        return result

    def _cloud_surveys(self, employee_id: Optional[str] = None) -> list[dict]:
        try:
            return [s.to_dict() for s in self.repo.get_surveys(self.db, employee_id)]
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Cloud unavailable, listing local surveys only: {e}")
            return []

    def list_surveys(self, employee_id: Optional[str] = None) -> list[dict]:
        """Local and cloud copies merged by id (cloud wins), newest first"""
        local = self.storage.local_records(SURVEYS)
        if employee_id:
            local = [s for s in local if s.get("employee_id") == employee_id]
        return merge_by_id(local, self._cloud_surveys(employee_id), sort_key="timestamp")

    def get_survey(self, survey_id: str) -> dict:
        try:
            survey = self.repo.get_survey(self.db, survey_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Cloud unavailable while loading survey {survey_id}: {e}")
            survey = None
        if survey is not None:
            return survey.to_dict()
        local = self.storage.get(SURVEYS, survey_id)
        if local is None:
            raise HTTPException(status_code=404, detail="Survey not found")
        return local

    def _apply_updates(self, survey_id: str, updates: dict[str, Any]) -> FailsafeResult:
        current = self.storage.get(SURVEYS, survey_id) or self.get_survey(survey_id)
        record = Survey.normalize({**current, **updates})
        result = self.storage.save(SURVEYS, record)
        if not result.success:
            raise HTTPException(status_code=500, detail=f"Survey could not be saved: {result.error}")
        return result

    def update_sync_status(self, survey_id: str, data: SurveySyncStatusUpdate) -> FailsafeResult:
        updates = data.model_dump(exclude_none=True)
        if "sync_error" in data.model_fields_set and data.sync_error is None:
            updates["sync_error"] = None
        return self._apply_updates(survey_id, updates)

    def mark_reviewed(self, survey_id: str) -> FailsafeResult:
        logger.info(f"✅ Marking duplicate survey {survey_id} as reviewed")
        return self._apply_updates(survey_id, {"duplicate_reviewed": True})

    def delete_survey(self, survey_id: str) -> None:
        """Remove the survey from both stores and drop its queued CRM hand-offs"""
        try:
            survey = self.repo.get_survey(self.db, survey_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Cloud unavailable while deleting survey {survey_id}, removing local copy only: {e}")
            survey = None
        local = self.storage.get(SURVEYS, survey_id)
        if survey is None and local is None:
            raise HTTPException(status_code=404, detail="Survey not found")

        if survey is not None:
            try:
                self.repo.delete_survey(self.db, survey)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Cloud delete failed for survey {survey_id}: {e}")
                raise HTTPException(status_code=503, detail="Survey could not be deleted from the cloud") from e
        remove_outbound_for(self.local_db, survey_id)
        self.storage.remove(SURVEYS, survey_id)
        logger.info(f"🗑️ Deleted survey {survey_id}")

    def list_duplicates(self, reviewed: Optional[bool] = None) -> list[dict]:
        return [s.to_dict() for s in self.repo.get_duplicates(self.db, reviewed)]

    def local_survey_count(self) -> int:
        return len(self.storage.local_records(SURVEYS))

    def export_surveys_csv(self, employee_id: Optional[str] = None) -> StreamingResponse:
        surveys = self.list_surveys(employee_id)
        filename = f"surveys_export_{utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"✅ CSV export: {filename} ({len(surveys)} surveys)")
        return StreamingResponse(
            iter([surveys_to_csv(surveys)]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )
