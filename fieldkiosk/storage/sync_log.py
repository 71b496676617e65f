"""Bookkeeping for the outbound (Salesforce / Zapier) sync queue"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..config import MAX_FAILED_SYNC_ITEMS, MAX_SYNC_LOGS
from ..models_local import FailedSyncItem, OutboundSyncItem, SyncLog

logger = logging.getLogger(__name__)


def _trim(db: Session, model, order_column, keep: int) -> None:
    """Delete everything but the newest ``keep`` rows"""
    stale_ids = [
        row.id for row in db.query(model.id).order_by(order_column.desc(), model.id.desc()).offset(keep).all()
    ]
    if stale_ids:
        db.query(model).filter(model.id.in_(stale_ids)).delete(synchronize_session=False)


def enqueue_outbound(db: Session, item_type: str, record_id: str, payload: dict) -> OutboundSyncItem:
    item = OutboundSyncItem(item_type=item_type, record_id=record_id, payload=payload, retry_count=0)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"📥 Queued {item_type} {record_id} for outbound sync")
    return item


def get_outbound_queue(db: Session) -> list[OutboundSyncItem]:
    return db.query(OutboundSyncItem).order_by(OutboundSyncItem.added_at.asc(), OutboundSyncItem.id.asc()).all()


def remove_outbound_for(db: Session, record_id: str) -> int:
    """Drop every queued hand-off for a record; returns how many were removed"""
    removed = (
        db.query(OutboundSyncItem)
        .filter(OutboundSyncItem.record_id == record_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        logger.info(f"🗑️ Removed {removed} queued hand-off(s) for {record_id}")
    return removed


def add_sync_log(
    db: Session,
    synced: int,
    failed: int,
    duplicates: int,
    queue_size: int,
    errors: Optional[list[str]] = None,
) -> SyncLog:
    log = SyncLog(
        synced=synced,
        failed=failed,
        duplicates=duplicates,
        queue_size=queue_size,
        errors=errors or [],
    )
    db.add(log)
    db.flush()
    _trim(db, SyncLog, SyncLog.timestamp, MAX_SYNC_LOGS)
    db.commit()
    return log


def get_sync_logs(db: Session, limit: int = MAX_SYNC_LOGS) -> list[SyncLog]:
    return db.query(SyncLog).order_by(SyncLog.timestamp.desc(), SyncLog.id.desc()).limit(limit).all()


def add_failed_sync_item(db: Session, item: OutboundSyncItem, error: Optional[str]) -> FailedSyncItem:
    failed = FailedSyncItem(
        item_type=item.item_type,
        record_id=item.record_id,
        payload=item.payload,
        retry_count=item.retry_count,
        error=error,
    )
    db.add(failed)
    db.flush()
    _trim(db, FailedSyncItem, FailedSyncItem.failed_at, MAX_FAILED_SYNC_ITEMS)
    db.commit()
    logger.error(f"❌ {item.item_type} {item.record_id} moved to failed items after {item.retry_count} attempts")
    return failed


def get_failed_sync_items(db: Session) -> list[FailedSyncItem]:
    return db.query(FailedSyncItem).order_by(FailedSyncItem.failed_at.desc(), FailedSyncItem.id.desc()).all()


def clear_failed_sync_items(db: Session) -> int:
    deleted = db.query(FailedSyncItem).delete(synchronize_session=False)
    db.commit()
    return deleted
