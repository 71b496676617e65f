"""
Email Service using SendGrid (primary) or Resend (fallback)
Report emails are written in MJML and compiled before sending
"""

import logging
from typing import Optional

import httpx
import resend
from mjml import mjml_to_html
from sqlalchemy.orm import Session

from .. import config
from ..integrations.errors import IntegrationNotConfiguredError
from ..models_notifications import NotificationLog

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml_to_html returns a result with 'html' and 'errors'
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"⚠️ MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    if getattr(result, "errors", None):
        logger.warning(f"⚠️ MJML compilation warnings: {result.errors}")
    return getattr(result, "html", str(result))


def _log_email(
    db: Session,
    to: str,
    subject: str,
    body: str,
    message_type: str,
    provider: str,
    status: str,
    provider_message_id: Optional[str] = None,
    error_message: Optional[str] = None,
) -> None:
    db.add(
        NotificationLog(
            channel="email",
            recipient=to,
            subject=subject,
            body=body,
            message_type=message_type,
            provider=provider,
            provider_message_id=provider_message_id,
            status=status,
            error_message=error_message,
        )
    )
    db.commit()


async def _send_via_sendgrid(
    to: str, subject: str, body: str, is_html: bool, http_client: Optional[httpx.AsyncClient]
) -> tuple[bool, Optional[str], Optional[str]]:
    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": config.SENDGRID_FROM_EMAIL},
        "subject": subject,
        "content": [{"type": "text/html" if is_html else "text/plain", "value": body}],
    }
    headers = {"Authorization": f"Bearer {config.SENDGRID_API_KEY}", "Content-Type": "application/json"}
    try:
        if http_client is not None:
            response = await http_client.post(SENDGRID_SEND_URL, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.post(SENDGRID_SEND_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        return False, None, str(e)

    if response.status_code >= 400:
        logger.error(f"❌ SendGrid error {response.status_code}: {response.text}")
        return False, None, f"SendGrid: Failed to send email ({response.status_code})"
    return True, response.headers.get("X-Message-Id"), None


def _send_via_resend(to: str, subject: str, body: str, is_html: bool) -> tuple[bool, Optional[str], Optional[str]]:
    resend.api_key = config.RESEND_API_KEY
    email_data = {"from": config.EMAIL_FROM_ADDRESS, "to": [to], "subject": subject}
    email_data["html" if is_html else "text"] = body
    try:
        response = resend.Emails.send(email_data)
    except Exception as e:
        logger.error(f"❌ Resend error for {to}: {e}")
        return False, None, str(e)
    return True, (response or {}).get("id"), None


async def send_email(
    db: Session,
    to: str,
    subject: str,
    body: str,
    is_html: bool = False,
    message_type: str = "generic",
    http_client: Optional[httpx.AsyncClient] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send one email

    Returns:
        Tuple of (success, provider message id on success or error message on failure)

    Raises:
        IntegrationNotConfiguredError: neither SendGrid nor Resend is configured
    """
    if not to or not subject or not body:
        return False, "Missing required fields: to, subject, body"

    if config.SENDGRID_API_KEY:
        provider = "sendgrid"
        logger.info(f"📧 Sending email via SendGrid to: {to}")
        success, message_id, error = await _send_via_sendgrid(to, subject, body, is_html, http_client)
    elif config.RESEND_API_KEY:
        provider = "resend"
        logger.info(f"📧 Sending email via Resend to: {to}")
        success, message_id, error = _send_via_resend(to, subject, body, is_html)
    else:
        logger.error("❌ No email service configured - SENDGRID_API_KEY and RESEND_API_KEY missing")
        raise IntegrationNotConfiguredError("Email service not configured")

    _log_email(
        db,
        to,
        subject,
        body,
        message_type,
        provider,
        "sent" if success else "failed",
        provider_message_id=message_id,
        error_message=error,
    )
    if success:
        logger.info(f"✅ Email sent to: {to}")
        return True, message_id
    return False, error
