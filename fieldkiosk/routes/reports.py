"""Daily report trigger"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.daily_report import ReportPeriod, ReportSettings, default_report_settings, run_daily_report
from ..webhook_security import require_sync_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"], dependencies=[Depends(require_sync_secret)])


class DailyReportRequest(BaseModel):
    manual: bool = False
    settings: Optional[ReportSettings] = None
    email_recipients: Optional[list[str]] = None
    sms_recipients: Optional[list[str]] = None
    report_period: Optional[ReportPeriod] = None


def resolve_settings(request: DailyReportRequest) -> ReportSettings:
    """Full settings on a manual run win; otherwise defaults with per-request overrides"""
    if request.manual and request.settings is not None:
        return request.settings

    settings = default_report_settings()
    overrides = {}
    if request.email_recipients is not None:
        overrides["email_recipients"] = request.email_recipients
    if request.sms_recipients is not None:
        overrides["sms_recipients"] = request.sms_recipients
    if request.report_period is not None:
        overrides["report_period"] = request.report_period
    return settings.model_copy(update=overrides)


@router.post("/daily")
async def send_daily_report(request: Optional[DailyReportRequest] = None, db: Session = Depends(get_db)):
    request = request or DailyReportRequest()
    try:
        return await run_daily_report(db, resolve_settings(request), manual=request.manual)
    except Exception as e:
        logger.error(f"❌ Daily report error: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
