"""
Twilio SMS Service
Sends report summaries and alert texts with the server-side credentials
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from .. import config
from ..integrations.errors import IntegrationNotConfiguredError
from ..models_notifications import NotificationLog
from ..shared.validators import normalize_sms_recipient

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def _log_sms(
    db: Session,
    to_phone: str,
    message_body: str,
    message_type: str,
    status: str,
    message_sid: Optional[str] = None,
    error_message: Optional[str] = None,
) -> None:
    db.add(
        NotificationLog(
            channel="sms",
            recipient=to_phone,
            body=message_body,
            message_type=message_type,
            provider="twilio",
            provider_message_id=message_sid,
            status=status,
            error_message=error_message,
        )
    )
    db.commit()


async def send_sms(
    db: Session,
    to_phone: str,
    message_body: str,
    message_type: str = "generic",
    http_client: Optional[httpx.AsyncClient] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        db: Database session (for the notification log)
        to_phone: Recipient; bare numbers are treated as US numbers
        message_body: SMS message content
        message_type: Type of message (daily_report, alert, ...)
        http_client: Optional client, used by tests

    Returns:
        Tuple of (success, message SID on success or error message on failure)

    Raises:
        IntegrationNotConfiguredError: Twilio credentials are missing
    """
    if not to_phone or not message_body:
        return False, "Missing required fields: to, message"

    account_sid = config.TWILIO_ACCOUNT_SID
    auth_token = config.TWILIO_AUTH_TOKEN
    from_number = config.TWILIO_PHONE_NUMBER
    if not account_sid or not auth_token or not from_number:
        logger.error("❌ Missing Twilio credentials in environment")
        raise IntegrationNotConfiguredError("Twilio credentials not configured")

    formatted_to = normalize_sms_recipient(to_phone)
    formatted_from = from_number if from_number.startswith("+") else f"+{from_number}"
    data = {"To": formatted_to, "From": formatted_from, "Body": message_body}
    url = f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json"

    logger.info(f"📱 Sending SMS: type={message_type}, to={formatted_to}")
    try:
        if http_client is not None:
            response = await http_client.post(url, auth=(account_sid, auth_token), data=data)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, auth=(account_sid, auth_token), data=data, timeout=10.0)
    except httpx.HTTPError as e:
        logger.error(f"❌ Twilio API error: {str(e)}")
        _log_sms(db, formatted_to, message_body, message_type, "failed", error_message=str(e))
        return False, str(e)

    logger.info(f"📡 Twilio API response status: {response.status_code}")
    if response.status_code in [200, 201]:
        message_sid = response.json().get("sid")
        _log_sms(db, formatted_to, message_body, message_type, "sent", message_sid=message_sid)
        logger.info(f"✅ SMS sent successfully to {formatted_to} (SID: {message_sid})")
        return True, message_sid

    error_message = f"Twilio API error: {response.status_code}"
    try:
        error_data = response.json()
    except ValueError:
        error_data = {}
    if error_data.get("message"):
        code = error_data.get("code")
        error_message = f"[{code}] {error_data['message']}" if code else error_data["message"]

    _log_sms(db, formatted_to, message_body, message_type, "failed", error_message=error_message)
    logger.error(f"❌ {error_message}")
    return False, error_message
