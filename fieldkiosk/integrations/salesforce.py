"""
Salesforce REST client

Handles OAuth (username/password grant), duplicate detection by phone,
Lead creation and verification, report runs for stats sync and Lead field
metadata for the field-mapping screen.
"""

import logging
import time
from typing import Any, Optional

import httpx

from .. import config
from ..cache import Cache, cache
from .errors import IntegrationNotConfiguredError, SalesforceError

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 90 * 60
FIELD_CACHE_KEY = "salesforce:lead_fields"
FIELD_CACHE_TTL = 30 * 60

# Salesforce field type -> simplified type
FIELD_TYPE_MAP = {
    "string": "text",
    "textarea": "text",
    "email": "text",
    "phone": "text",
    "url": "text",
    "picklist": "picklist",
    "multipicklist": "picklist",
    "boolean": "boolean",
    "checkbox": "boolean",
    "date": "date",
    "datetime": "datetime",
    "int": "number",
    "double": "number",
    "currency": "number",
    "percent": "number",
    "reference": "reference",
    "id": "text",
}

# instance_url -> (access_token, expires_at)
_token_cache: dict[str, tuple[str, float]] = {}


def map_salesforce_type(sf_type: str) -> str:
    return FIELD_TYPE_MAP.get((sf_type or "").lower(), "text")


def soql_quote(value: str) -> str:
    """Escape a literal for use inside single quotes in SOQL"""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def clear_token_cache() -> None:
    _token_cache.clear()


class SalesforceClient:
    def __init__(
        self,
        instance_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        security_token: Optional[str] = None,
        api_version: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        field_cache: Optional[Cache] = None,
    ):
        self.instance_url = (instance_url or config.SALESFORCE_INSTANCE_URL or "").rstrip("/")
        self.client_id = client_id or config.SALESFORCE_CLIENT_ID
        self.client_secret = client_secret or config.SALESFORCE_CLIENT_SECRET
        self.username = username or config.SALESFORCE_USERNAME
        self.password = password or config.SALESFORCE_PASSWORD
        self.security_token = security_token if security_token is not None else config.SALESFORCE_SECURITY_TOKEN
        self.api_version = api_version or config.SALESFORCE_API_VERSION
        self.http_client = http_client
        self.field_cache = field_cache or cache

    @property
    def is_configured(self) -> bool:
        return all([self.instance_url, self.client_id, self.client_secret, self.username, self.password])

    @property
    def data_url(self) -> str:
        return f"{self.instance_url}/services/data/{self.api_version}"

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            if self.http_client is not None:
                return await self.http_client.request(method, url, **kwargs)
            async with httpx.AsyncClient(timeout=30.0) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ Salesforce request error ({method} {url}): {e}")
            raise SalesforceError(f"Salesforce request failed: {e}") from e

    async def authenticate(self) -> str:
        """Return a cached access token or run the password grant"""
        if not self.is_configured:
            raise IntegrationNotConfiguredError("Missing Salesforce credentials in environment variables")

        cached = _token_cache.get(self.instance_url)
        if cached and time.time() < cached[1]:
            return cached[0]

        response = await self._send(
            "POST",
            f"{self.instance_url}/services/oauth2/token",
            data={
                "grant_type": "password",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "username": self.username,
                "password": f"{self.password}{self.security_token or ''}",
            },
        )
        if response.status_code != 200:
            raise SalesforceError(f"Salesforce auth failed: {response.status_code} - {response.text}")

        token = response.json()["access_token"]
        _token_cache[self.instance_url] = (token, time.time() + TOKEN_TTL_SECONDS)
        logger.info("✅ Salesforce authenticated successfully")
        return token

    async def _api(self, method: str, path: str, **kwargs) -> httpx.Response:
        token = await self.authenticate()
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        return await self._send(method, f"{self.data_url}{path}", headers=headers, **kwargs)

    async def query(self, soql: str) -> dict[str, Any]:
        response = await self._api("GET", "/query", params={"q": soql})
        if response.status_code != 200:
            raise SalesforceError(f"Salesforce query failed: {response.status_code} - {response.text}")
        return response.json()

    async def test_connection(self) -> dict[str, Any]:
        try:
            await self.query("SELECT Id FROM Lead LIMIT 1")
        except SalesforceError as e:
            return {"success": False, "message": e.message}
        return {"success": True, "message": "Salesforce connection successful"}

    async def check_duplicate(self, phone: str) -> dict[str, Any]:
        """Look for an existing Lead, then Account, with this phone number"""
        quoted = soql_quote(phone)

        leads = await self.query(f"SELECT Id, Name, Email FROM Lead WHERE Phone = '{quoted}' LIMIT 1")
        if leads.get("totalSize", 0) > 0:
            record = leads["records"][0]
            return {
                "is_duplicate": True,
                "record_type": "Lead",
                "salesforce_id": record["Id"],
                "record_name": record.get("Name"),
                "record_email": record.get("Email"),
            }

        accounts = await self.query(
            "SELECT Id, Name, PersonEmail FROM Account "
            f"WHERE PersonMobilePhone = '{quoted}' OR Phone = '{quoted}' LIMIT 1"
        )
        if accounts.get("totalSize", 0) > 0:
            record = accounts["records"][0]
            return {
                "is_duplicate": True,
                "record_type": "Account",
                "salesforce_id": record["Id"],
                "record_name": record.get("Name"),
                "record_email": record.get("PersonEmail"),
            }

        return {"is_duplicate": False}

    def record_url(self, record_type: str, record_id: str) -> str:
        return f"{self.instance_url}/lightning/r/{record_type}/{record_id}/view"

    async def create_lead(self, lead_data: dict[str, Any]) -> str:
        response = await self._api("POST", "/sobjects/Lead", json=lead_data)
        if response.status_code not in (200, 201):
            raise SalesforceError(f"Salesforce Lead creation failed: {response.status_code} - {response.text}")
        lead_id = response.json()["id"]
        logger.info(f"✅ Lead created in Salesforce: {lead_id}")
        return lead_id

    async def verify_record(self, record_id: str) -> dict[str, Any]:
        response = await self._api("GET", f"/sobjects/Lead/{record_id}")
        if response.status_code == 200:
            return {"exists": True, "record_url": self.record_url("Lead", record_id)}
        if response.status_code == 404:
            return {"exists": False, "error": "Record not found in Salesforce"}
        raise SalesforceError(f"Verification failed: {response.status_code} - {response.text}")

    async def delete_record(self, record_id: str, record_type: str = "Lead") -> None:
        response = await self._api("DELETE", f"/sobjects/{record_type}/{record_id}")
        if response.status_code not in (200, 204):
            raise SalesforceError(f"Salesforce delete failed: {response.status_code} - {response.text}")
        logger.info(f"🗑️ Deleted {record_type} {record_id} from Salesforce")

    async def run_report(self, report_id: str) -> dict[str, Any]:
        response = await self._api("GET", f"/analytics/reports/{report_id}", params={"includeDetails": "true"})
        if response.status_code != 200:
            raise SalesforceError(f"Report {report_id} failed: {response.status_code} - {response.text}")
        return response.json()

    async def describe_lead_fields(self, use_cache: bool = True) -> list[dict[str, Any]]:
        """Lead field metadata, standard fields first, then by label"""
        if use_cache:
            cached_fields = self.field_cache.get(FIELD_CACHE_KEY)
            if cached_fields is not None:
                logger.info("✓ Using cached Salesforce Lead fields")
                return cached_fields

        logger.info("🔄 Fetching Lead fields from Salesforce...")
        response = await self._api("GET", "/sobjects/Lead/describe")
        if response.status_code != 200:
            raise SalesforceError(f"Salesforce API error: {response.status_code} - {response.text}")

        fields = [
            {
                "name": field["name"],
                "label": field["label"],
                "type": map_salesforce_type(field.get("type")),
                "custom": bool(field.get("custom")),
                "length": field.get("length"),
                "picklist_values": [pv["value"] for pv in field.get("picklistValues") or []],
                "reference_to": field.get("referenceTo") or [],
                "required": not field.get("nillable", True) and not field.get("defaultedOnCreate", False),
            }
            for field in response.json().get("fields", [])
        ]
        fields.sort(key=lambda f: (f["custom"], f["label"].lower()))

        self.field_cache.set(FIELD_CACHE_KEY, fields, FIELD_CACHE_TTL)
        custom_count = sum(1 for f in fields if f["custom"])
        logger.info(
            f"✅ Fetched {len(fields)} Lead fields ({len(fields) - custom_count} standard, {custom_count} custom)"
        )
        return fields

    def clear_field_cache(self) -> None:
        self.field_cache.delete(FIELD_CACHE_KEY)
        logger.info("✓ Salesforce field cache cleared")
