"""Survey router - FastAPI endpoints for survey operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...local_database import get_local_db
from ...storage.failsafe import FailsafeResult
from ...webhook_security import require_api_key
from .schemas import SurveyCreate, SurveyResponse, SurveySaveResponse, SurveySyncStatusUpdate
from .service import SurveyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/surveys", tags=["Surveys"], dependencies=[Depends(require_api_key)])


def get_survey_service(
    db: Session = Depends(get_db),
    local_db: Session = Depends(get_local_db),
) -> SurveyService:
    """Dependency injection for SurveyService"""
    return SurveyService(db, local_db)


def _save_response(result: FailsafeResult) -> SurveySaveResponse:
    return SurveySaveResponse(
        success=result.success,
        survey=SurveyResponse(**result.data) if result.data else None,
        synced=result.synced,
        error=result.error,
    )


@router.post("", response_model=SurveySaveResponse, status_code=201)
async def add_survey(data: SurveyCreate, service: SurveyService = Depends(get_survey_service)):
    """Capture a survey (stored on the device first, then pushed to the cloud)"""
    return _save_response(service.add_survey(data))


@router.get("", response_model=list[SurveyResponse])
async def list_surveys(
    employee_id: Optional[str] = Query(None),
    service: SurveyService = Depends(get_survey_service),
):
    return service.list_surveys(employee_id)


@router.get("/duplicates", response_model=list[SurveyResponse])
async def list_duplicates(
    reviewed: Optional[bool] = Query(None),
    service: SurveyService = Depends(get_survey_service),
):
    return service.list_duplicates(reviewed)


@router.get("/local-count")
async def local_survey_count(service: SurveyService = Depends(get_survey_service)):
    return {"count": service.local_survey_count()}


@router.get("/export")
async def export_surveys(
    employee_id: Optional[str] = Query(None),
    service: SurveyService = Depends(get_survey_service),
):
    return service.export_surveys_csv(employee_id)


@router.get("/{survey_id}", response_model=SurveyResponse)
async def get_survey(survey_id: str, service: SurveyService = Depends(get_survey_service)):
    return service.get_survey(survey_id)


@router.patch("/{survey_id}/sync-status", response_model=SurveySaveResponse)
async def update_sync_status(
    survey_id: str,
    data: SurveySyncStatusUpdate,
    service: SurveyService = Depends(get_survey_service),
):
    return _save_response(service.update_sync_status(survey_id, data))


@router.post("/{survey_id}/review", response_model=SurveySaveResponse)
async def mark_reviewed(survey_id: str, service: SurveyService = Depends(get_survey_service)):
    return _save_response(service.mark_reviewed(survey_id))


@router.delete("/{survey_id}", status_code=204)
async def delete_survey(survey_id: str, service: SurveyService = Depends(get_survey_service)):
    service.delete_survey(survey_id)
