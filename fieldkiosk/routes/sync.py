"""Kiosk sync endpoints: status, manual cycle, logs, failed items and field mapping"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..integrations.errors import IntegrationError
from ..integrations.zapier import ZapierClient
from ..local_database import get_local_db
from ..services.sync_service import run_sync_cycle, sync_status
from ..storage.local_store import FIELD_MAPPING_KEY, LocalStore
from ..storage.sync_log import clear_failed_sync_items, get_failed_sync_items, get_sync_logs
from ..webhook_security import require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"], dependencies=[Depends(require_api_key)])


class FieldMapping(BaseModel):
    surveyField: str
    salesforceField: str
    fieldType: str = "text"


def get_zapier_client() -> ZapierClient:
    return ZapierClient()


def _failed_item(item) -> dict:
    return {
        "id": item.id,
        "item_type": item.item_type,
        "record_id": item.record_id,
        "retry_count": item.retry_count,
        "error": item.error,
        "failed_at": item.failed_at.isoformat(),
    }


@router.get("/status")
async def get_sync_status(db: Session = Depends(get_db), local_db: Session = Depends(get_local_db)):
    status = sync_status(local_db, db)
    status["failed_items"] = len(get_failed_sync_items(local_db))
    return status


@router.post("/run")
async def run_sync_now(db: Session = Depends(get_db), local_db: Session = Depends(get_local_db)):
    logger.info("⚡ Immediate sync triggered")
    return await run_sync_cycle(local_db, db)


@router.get("/logs")
async def list_sync_logs(local_db: Session = Depends(get_local_db)):
    return [
        {
            "timestamp": log.timestamp.isoformat(),
            "synced": log.synced,
            "failed": log.failed,
            "duplicates": log.duplicates,
            "queue_size": log.queue_size,
            "errors": log.errors or [],
        }
        for log in get_sync_logs(local_db)
    ]


@router.get("/failed")
async def list_failed_items(local_db: Session = Depends(get_local_db)):
    return [_failed_item(item) for item in get_failed_sync_items(local_db)]


@router.delete("/failed")
async def clear_failed_items(local_db: Session = Depends(get_local_db)):
    deleted = clear_failed_sync_items(local_db)
    logger.info(f"🧹 Cleared {deleted} failed sync items")
    return {"deleted": deleted}


@router.get("/field-mapping", response_model=Optional[list[FieldMapping]])
async def get_field_mapping(local_db: Session = Depends(get_local_db)):
    """Custom survey -> Lead mapping; null means the built-in layout is used"""
    return LocalStore(local_db).get(FIELD_MAPPING_KEY)


@router.put("/field-mapping", response_model=Optional[list[FieldMapping]])
async def save_field_mapping(mappings: list[FieldMapping], local_db: Session = Depends(get_local_db)):
    kv = LocalStore(local_db)
    if not mappings:
        kv.delete(FIELD_MAPPING_KEY)
        logger.info("✅ Custom field mapping removed, using default layout")
        return None
    kv.set(FIELD_MAPPING_KEY, [m.model_dump() for m in mappings])
    logger.info(f"✅ Saved {len(mappings)} custom Salesforce field mappings")
    return mappings


@router.post("/zapier/test")
async def test_zapier_webhook(zapier: ZapierClient = Depends(get_zapier_client)):
    try:
        return await zapier.test_webhook()
    except IntegrationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
