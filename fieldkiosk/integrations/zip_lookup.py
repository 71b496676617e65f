"""Zip code -> city/state lookup via Zippopotam.us (no API key needed)"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from ..shared.validators import validate_zip_code

logger = logging.getLogger(__name__)

ZIPPOPOTAM_URL = "https://api.zippopotam.us/us/{zip_code}"


class ZipLookupResult(BaseModel):
    success: bool
    city: Optional[str] = None
    state: Optional[str] = None
    state_abbr: Optional[str] = None
    error: Optional[str] = None


async def lookup_zip_code(zip_code: str, client: Optional[httpx.AsyncClient] = None) -> ZipLookupResult:
    """Never raises; failures come back as success=False so callers can continue"""
    if not validate_zip_code(zip_code):
        return ZipLookupResult(success=False, error="Invalid zip code format. Must be 5 digits.")

    url = ZIPPOPOTAM_URL.format(zip_code=zip_code.strip())
    try:
        if client is None:
            async with httpx.AsyncClient() as http:
                response = await http.get(url, headers={"Accept": "application/json"}, timeout=10.0)
        else:
            response = await client.get(url, headers={"Accept": "application/json"}, timeout=10.0)
    except httpx.HTTPError as e:
        logger.error(f"❌ Zip lookup error for {zip_code}: {e}")
        return ZipLookupResult(
            success=False, error="Unable to lookup zip code. Please verify address before continuing."
        )

    if response.status_code == 404:
        return ZipLookupResult(success=False, error="Zip code not found. Please verify the zip code.")
    if response.status_code != 200:
        logger.error(f"❌ Zip lookup returned status {response.status_code} for {zip_code}")
        return ZipLookupResult(
            success=False, error="Unable to lookup zip code. Please verify address before continuing."
        )

    places = response.json().get("places") or []
    if not places:
        return ZipLookupResult(success=False, error="No location data found for this zip code.")

    place = places[0]
    return ZipLookupResult(
        success=True,
        city=place.get("place name"),
        state=place.get("state"),
        state_abbr=place.get("state abbreviation"),
    )
