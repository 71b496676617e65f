"""Employee survey stats sync trigger"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..integrations.errors import IntegrationError
from ..integrations.salesforce import SalesforceClient
from ..services.stats_sync import StatsSyncError, run_stats_sync
from ..webhook_security import require_sync_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["stats"], dependencies=[Depends(require_sync_secret)])


def get_salesforce_client() -> SalesforceClient:
    return SalesforceClient()


@router.post("/sync")
async def sync_stats(db: Session = Depends(get_db), client: SalesforceClient = Depends(get_salesforce_client)):
    try:
        return await run_stats_sync(db, client)
    except StatsSyncError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except IntegrationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
