"""
Shared-secret authentication for kiosk and server-side endpoints

- Kiosk data routes send the device API key in ``X-API-Key``
- Server-side functions (ADP bridge, reports, notifications, stats sync)
  send ``Authorization: Bearer <SYNC_SECRET>``

Secrets are always compared in constant time.
"""

import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from . import config

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


class WebhookSignatureError(Exception):
    """Raised when a shared secret does not match"""

    pass


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def verify_shared_secret(provided: Optional[str], expected: Optional[str]) -> None:
    if not expected:
        raise WebhookSignatureError("Shared secret not configured")
    if not constant_time_compare(provided, expected):
        raise WebhookSignatureError("Shared secret mismatch")


async def require_sync_secret(request: Request) -> None:
    """FastAPI dependency for server-side function endpoints"""
    token = extract_bearer_token(request.headers.get("Authorization"))
    try:
        verify_shared_secret(token, config.SYNC_SECRET)
    except WebhookSignatureError as e:
        logger.warning(f"⚠️ Rejected unauthorized call to {request.url.path}: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized") from e


async def require_api_key(request: Request, api_key: Optional[str] = Security(api_key_header)) -> None:
    """FastAPI dependency for kiosk data endpoints"""
    try:
        verify_shared_secret(api_key, config.KIOSK_API_KEY)
    except WebhookSignatureError as e:
        logger.warning(f"⚠️ Rejected kiosk request to {request.url.path}: {e}")
        raise HTTPException(status_code=401, detail="Invalid or missing API key") from e
