"""
ADP Bridge Routes
Health, token test and the secret-protected sync triggers
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..integrations.adp import ADPClient, load_certificates
from ..integrations.errors import IntegrationError
from ..models import utcnow
from ..services.adp_sync import sync_all, sync_employee_onboarding, sync_time_entries
from ..webhook_security import require_sync_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/adp", tags=["adp"])


def get_adp_client() -> ADPClient:
    return ADPClient()


@router.get("/")
async def adp_bridge_info():
    """Endpoint documentation"""
    return {
        "status": "online",
        "name": "ADP Sync Bridge",
        "endpoints": {
            "/adp/": "This documentation",
            "/adp/health": "Health check and ADP configuration status",
            "/adp/sync/time-entries": "Sync time clock data to ADP",
            "/adp/sync/employees": "Sync employee onboarding to ADP",
            "/adp/sync/all": "Sync both time entries and employees",
            "/adp/test/token": "Test ADP OAuth token generation",
        },
        "authentication": "Sync endpoints require Authorization: Bearer <SYNC_SECRET>",
    }


@router.get("/health")
async def adp_health():
    has_credentials = all([config.ADP_CLIENT_ID, config.ADP_CLIENT_SECRET, config.ADP_SSL_CERT, config.ADP_SSL_KEY])
    has_database = bool(config.DATABASE_URL)
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "configuration": {
            "adp_credentials": has_credentials,
            "ssl_certificates": load_certificates() is not None,
            "database_config": has_database,
        },
        "ready_for_sync": has_credentials and has_database,
    }


@router.get("/test/token")
async def test_adp_token(client: ADPClient = Depends(get_adp_client)):
    try:
        token = await client.get_access_token()
    except IntegrationError as e:
        logger.error(f"❌ ADP token test failed: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return {
        "success": bool(token),
        "token_preview": f"{token[:20]}..." if token else None,
        "timestamp": utcnow().isoformat(),
    }


@router.post("/sync/time-entries", dependencies=[Depends(require_sync_secret)])
async def adp_sync_time_entries(db: Session = Depends(get_db), client: ADPClient = Depends(get_adp_client)):
    return await sync_time_entries(db, client)


@router.post("/sync/employees", dependencies=[Depends(require_sync_secret)])
async def adp_sync_employees(db: Session = Depends(get_db), client: ADPClient = Depends(get_adp_client)):
    return await sync_employee_onboarding(db, client)


@router.post("/sync/all", dependencies=[Depends(require_sync_secret)])
async def adp_sync_all(db: Session = Depends(get_db), client: ADPClient = Depends(get_adp_client)):
    results = await sync_all(db, client)
    results["timestamp"] = utcnow().isoformat()
    return results
