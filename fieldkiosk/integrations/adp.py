"""
ADP Workforce Now client

ADP requires mutual TLS on every call. The certificate and private key are
provided base64-encoded (ADP_SSL_CERT / ADP_SSL_KEY) and loaded into an SSL
context for httpx.
"""

import base64
import binascii
import logging
import os
import ssl
import tempfile
import time
from typing import Any, Optional

import httpx

from .. import config
from ..shared.validators import digits_only
from .errors import ADPError, IntegrationNotConfiguredError

logger = logging.getLogger(__name__)

ADP_SCOPE = "time:workers:read time:workers:write hr:workers:read hr:workers:write"
TOKEN_REFRESH_MARGIN_SECONDS = 60


def load_certificates() -> Optional[tuple[bytes, bytes]]:
    """Decode the base64 PEM certificate and key; None when unavailable"""
    if not config.ADP_SSL_CERT or not config.ADP_SSL_KEY:
        logger.error("❌ ADP_SSL_CERT or ADP_SSL_KEY not found in environment")
        return None
    try:
        return base64.b64decode(config.ADP_SSL_CERT), base64.b64decode(config.ADP_SSL_KEY)
    except (binascii.Error, ValueError) as e:
        logger.error(f"❌ Error decoding ADP certificates: {e}")
        return None


def build_ssl_context(cert_pem: bytes, key_pem: bytes) -> ssl.SSLContext:
    context = ssl.create_default_context()
    cert_file = tempfile.NamedTemporaryFile(suffix=".crt", delete=False)
    key_file = tempfile.NamedTemporaryFile(suffix=".key", delete=False)
    try:
        cert_file.write(cert_pem)
        key_file.write(key_pem)
        cert_file.close()
        key_file.close()
        context.load_cert_chain(certfile=cert_file.name, keyfile=key_file.name)
    finally:
        os.unlink(cert_file.name)
        os.unlink(key_file.name)
    return context


class ADPClient:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id or config.ADP_CLIENT_ID
        self.client_secret = client_secret or config.ADP_CLIENT_SECRET
        self.api_url = (api_url or config.ADP_API_URL).rstrip("/")
        self.http_client = http_client
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

    @property
    def token_url(self) -> str:
        return f"{self.api_url}/auth/oauth/v2/token"

    @property
    def time_url(self) -> str:
        return f"{self.api_url}/time/v2/workers"

    @property
    def hr_url(self) -> str:
        return f"{self.api_url}/hr/v2/workers"

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            if self.http_client is not None:
                return await self.http_client.request(method, url, **kwargs)

            certs = load_certificates()
            if certs is None:
                raise IntegrationNotConfiguredError("Failed to load ADP SSL certificates")
            async with httpx.AsyncClient(verify=build_ssl_context(*certs), timeout=30.0) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ ADP request error ({method} {url}): {e}")
            raise ADPError(f"ADP request failed: {e}") from e

    async def get_access_token(self) -> str:
        if self._access_token and time.time() < self._token_expires_at:
            return self._access_token
        if not self.has_credentials:
            raise IntegrationNotConfiguredError("Missing ADP client credentials")

        credentials = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
        response = await self._send(
            "POST",
            self.token_url,
            headers={
                "Authorization": f"Basic {credentials}",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            data={"grant_type": "client_credentials", "scope": ADP_SCOPE},
        )
        if response.status_code != 200:
            raise ADPError(f"ADP token request failed: {response.status_code} - {response.text}")

        data = response.json()
        self._access_token = data["access_token"]
        self._token_expires_at = time.time() + int(data.get("expires_in", 3600)) - TOKEN_REFRESH_MARGIN_SECONDS
        logger.info("✅ ADP access token obtained")
        return self._access_token

    async def request(self, method: str, url: str, body: Optional[dict] = None) -> dict[str, Any]:
        token = await self.get_access_token()
        response = await self._send(
            method,
            url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json=body,
        )
        if response.status_code >= 400:
            raise ADPError(f"ADP API error: {response.status_code} - {response.text}")
        return response.json() if response.content else {}

    async def submit_time_card(self, adp_employee_id: str, payload: dict) -> dict[str, Any]:
        return await self.request("POST", f"{self.time_url}/{adp_employee_id}/team-time-cards", payload)

    async def create_worker(self, payload: dict) -> dict[str, Any]:
        return await self.request("POST", self.hr_url, payload)


def _date_part(value: Any) -> Optional[str]:
    if value is None:
        return None
    return (value.isoformat() if hasattr(value, "isoformat") else str(value))[:10]


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def transform_time_entry(time_entry: dict, employee: dict) -> dict[str, Any]:
    """Time entry -> ADP team time card payload"""
    clock_in = time_entry.get("clock_in")
    clock_out = time_entry.get("clock_out")
    gps = time_entry.get("gps_coordinates") or {}
    start_date = _date_part(clock_in)

    entry = {
        "entryDate": start_date,
        "timeTypeCode": {"codeValue": "Regular Time"},
        "timeIn": _iso(clock_in),
        "payCode": {"codeValue": "REG"},
        "comment": (
            f"GPS: {gps.get('latitude') or 'N/A'},{gps.get('longitude') or 'N/A'}"
            f" | Store: {time_entry.get('store_name') or time_entry.get('store')}"
        ),
    }
    if clock_out is not None:
        entry["timeOut"] = _iso(clock_out)

    return {
        "timeCards": [
            {
                "associateOID": employee.get("adp_employee_id"),
                "timeSheets": [
                    {
                        "timePeriod": {
                            "startDate": start_date,
                            "endDate": _date_part(clock_out) if clock_out is not None else start_date,
                        },
                        "entries": [entry],
                    }
                ],
            }
        ]
    }


def transform_employee_onboarding(employee: dict, onboarding: dict) -> dict[str, Any]:
    """Employee + onboarding data -> ADP worker payload (personal_info must be decrypted)"""
    personal_info = onboarding.get("personal_info") or employee.get("personal_info") or {}
    w4_data = onboarding.get("w4_data") or {}
    i9_data = onboarding.get("i9_data") or {}
    direct_deposit = onboarding.get("direct_deposit_data") or {}

    phone_digits = digits_only(employee.get("phone"))[-10:]
    landlines = []
    if phone_digits:
        landlines.append(
            {
                "areaDialing": phone_digits[:3],
                "dialNumber": phone_digits[3:],
                "nameCode": {"codeValue": "Mobile"},
            }
        )

    person = {
        "legalName": {
            "givenName": employee.get("first_name"),
            "familyName1": employee.get("last_name"),
        },
        "birthDate": personal_info.get("dateOfBirth"),
        "genderCode": {"codeValue": personal_info.get("gender") or "Not Specified"},
        "legalAddress": {
            "lineOne": personal_info.get("address"),
            "cityName": personal_info.get("city"),
            "countrySubdivisionLevel1": {"codeValue": personal_info.get("state")},
            "postalCode": personal_info.get("zipCode"),
            "countryCode": "US",
        },
        "communication": {
            "emails": [{"emailUri": employee.get("email"), "nameCode": {"codeValue": "Work Email"}}],
            "landlines": landlines,
        },
    }
    if personal_info.get("ssn"):
        person["governmentIDs"] = [{"idValue": personal_info["ssn"], "nameCode": {"codeValue": "SSN"}}]

    payroll_deductions = []
    if direct_deposit.get("account_number"):
        payroll_deductions.append(
            {
                "deductionCode": {"codeValue": "Direct Deposit"},
                "goalAmount": {"percentageValue": 100},
                "bankAccount": {
                    "routingNumber": direct_deposit.get("routing_number"),
                    "accountNumber": direct_deposit.get("account_number"),
                    "accountTypeCode": {"codeValue": direct_deposit.get("account_type") or "Checking"},
                },
            }
        )

    return {
        "workers": [
            {
                "workerID": {"idValue": employee.get("id")},
                "person": person,
                "workAssignment": {
                    "hireDate": employee.get("hire_date"),
                    "workerTypeCode": {"codeValue": "Employee"},
                    "primaryIndicator": True,
                },
                "taxWithholdings": {
                    "federalTaxWithholding": {
                        "filingStatusCode": {"codeValue": w4_data.get("filing_status") or "Single"},
                        "allowances": w4_data.get("allowances") or 0,
                        "additionalAmount": {
                            "amountValue": w4_data.get("additional_withholding") or 0,
                            "currencyCode": "USD",
                        },
                    }
                },
                "workEligibility": {
                    "i9Verification": {
                        "verificationDate": i9_data.get("verification_date"),
                        "documentTypeCode": {"codeValue": i9_data.get("document_type") or "US Passport"},
                        "documentNumber": i9_data.get("document_number"),
                        "expirationDate": i9_data.get("expiration_date"),
                    }
                },
                "payrollDeductions": payroll_deductions,
            }
        ]
    }
