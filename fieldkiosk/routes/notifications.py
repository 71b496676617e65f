"""SMS and email sender endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..integrations.errors import IntegrationError
from ..services.email_service import send_email
from ..services.twilio_service import send_sms
from ..webhook_security import require_sync_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(require_sync_secret)])


class SMSRequest(BaseModel):
    to: str = ""
    message: str = ""
    message_type: str = "generic"


class EmailRequest(BaseModel):
    to: str = ""
    subject: str = ""
    body: str = ""
    is_html: bool = False
    message_type: str = "generic"


class NotificationResponse(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@router.post("/sms", response_model=NotificationResponse)
async def send_sms_notification(request: SMSRequest, db: Session = Depends(get_db)):
    if not request.to or not request.message:
        raise HTTPException(status_code=400, detail="Missing required fields: to, message")
    try:
        success, result = await send_sms(db, request.to, request.message, message_type=request.message_type)
    except IntegrationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    if success:
        return NotificationResponse(success=True, message_id=result)
    # Provider rejection is reported in the body, not as an HTTP failure
    return NotificationResponse(success=False, error=result)


@router.post("/email", response_model=NotificationResponse)
async def send_email_notification(request: EmailRequest, db: Session = Depends(get_db)):
    if not request.to or not request.subject or not request.body:
        raise HTTPException(status_code=400, detail="Missing required fields: to, subject, body")
    try:
        success, result = await send_email(
            db,
            request.to,
            request.subject,
            request.body,
            is_html=request.is_html,
            message_type=request.message_type,
        )
    except IntegrationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    if success:
        return NotificationResponse(success=True, message_id=result)
    raise HTTPException(status_code=500, detail=result or "Failed to send email")
