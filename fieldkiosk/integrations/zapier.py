"""Zapier webhook hand-off for booked appointments"""

import logging
from typing import Any, Optional

import httpx

from .. import config
from .errors import IntegrationNotConfiguredError, ZapierError
from .salesforce_mapping import store_label

logger = logging.getLogger(__name__)


def build_appointment_payload(survey: dict, appointment: Optional[dict] = None) -> dict[str, Any]:
    """Flatten a survey and its appointment into the webhook payload"""
    answers = survey.get("answers") or {}
    contact = answers.get("contact_info") or {}
    appointment = appointment or survey.get("appointment") or {}

    return {
        # Survey answers
        "buys_bottled_water": answers.get("buys_bottled_water"),
        "is_homeowner": answers.get("is_homeowner"),
        "has_salt_system": answers.get("has_salt_system"),
        "water_quality": answers.get("water_quality"),
        "water_source": answers.get("water_source"),
        "current_treatment": answers.get("current_treatment"),
        "property_type": answers.get("property_type"),
        # Contact
        "first_name": contact.get("firstName") or "",
        "last_name": contact.get("lastName") or "",
        "phone": contact.get("phone") or answers.get("phone") or "",
        "email": appointment.get("email") or "",
        "address": appointment.get("address") or contact.get("address") or "",
        "city": contact.get("city") or "",
        "state": contact.get("state") or "",
        "zip_code": contact.get("zipCode") or "",
        # Appointment
        "appointment_date": appointment.get("date"),
        "appointment_time": appointment.get("time"),
        "appointment_notes": appointment.get("notes") or "",
        # Metadata
        "store": store_label(survey.get("store")),
        "survey_date": survey.get("timestamp"),
        "employee_id": survey.get("employee_id"),
        "employee_alias": survey.get("employee_alias") or "",
        "survey_id": survey.get("id"),
    }


class ZapierClient:
    def __init__(self, webhook_url: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.webhook_url = webhook_url or config.ZAPIER_WEBHOOK_URL
        self.http_client = http_client

    async def _post(self, payload: dict) -> httpx.Response:
        if not self.webhook_url:
            raise IntegrationNotConfiguredError("ZAPIER_WEBHOOK_URL is not configured")
        try:
            if self.http_client is not None:
                return await self.http_client.post(self.webhook_url, json=payload)
            async with httpx.AsyncClient(timeout=15.0) as client:
                return await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise ZapierError(f"Zapier webhook request failed: {e}") from e

    async def send_appointment(self, survey: dict, appointment: Optional[dict] = None) -> None:
        logger.info(f"🔄 Sending appointment for survey {survey.get('id')} to Zapier")
        response = await self._post(build_appointment_payload(survey, appointment))
        if response.status_code >= 400:
            raise ZapierError(f"Zapier webhook failed: {response.status_code} - {response.text}")
        logger.info("✅ Appointment sent to Zapier successfully")

    async def test_webhook(self) -> dict[str, Any]:
        try:
            response = await self._post({"test": True, "message": "Field kiosk webhook test"})
        except ZapierError as e:
            return {"success": False, "message": e.message}
        if response.status_code >= 400:
            return {"success": False, "message": f"HTTP {response.status_code}: {response.text}"}
        return {"success": True, "message": "Zapier webhook reachable"}
