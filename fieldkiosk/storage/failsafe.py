"""
Failsafe storage - offline-first write-ahead for surveys and time entries

Every write lands in the device store before the hosted database is
touched. A record only leaves the sync queue once the cloud confirmed the
upsert, and because record ids are generated by the client the upsert can
be replayed any number of times.

Layers, in order:
1. Device store (LocalRecord row, synced=False)
2. Emergency JSON file when the device store is unusable
3. Cloud upsert (best effort; failures stay queued)
4. Backup checkpoint in the key-value store
"""

import json
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import EMERGENCY_STORAGE_DIR
from ..models import utcnow
from ..models_local import LocalRecord
from .local_store import LAST_BACKUP_KEY, LocalStore

logger = logging.getLogger(__name__)

SURVEYS = "surveys"
TIME_ENTRIES = "time_entries"

Upserter = Callable[[dict], None]


class FailsafeResult(BaseModel):
    success: bool
    data: Optional[dict] = None
    error: Optional[str] = None
    synced: bool = False


def cloud_upserter(db: Session, model) -> Upserter:
    """Build an idempotent upsert of a payload dict into the hosted database"""

    def upsert(payload: dict) -> None:
        try:
            db.merge(model.from_dict(payload))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

    return upsert


class FailsafeStorage:
    def __init__(
        self,
        local_db: Session,
        upserters: Optional[dict[str, Upserter]] = None,
        emergency_dir: str = EMERGENCY_STORAGE_DIR,
    ):
        self.local_db = local_db
        self.upserters = upserters or {}
        self.emergency_dir = Path(emergency_dir)
        self.kv = LocalStore(local_db)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def save(self, collection: str, record: dict) -> FailsafeResult:
        """Save locally first, then attempt the cloud upsert"""
        record_id = record.get("id")
        if not record_id:
            return FailsafeResult(success=False, error="Record has no id")

        try:
            self._write_local(collection, record)
            logger.info(f"✅ {collection} {record_id} saved to device store")
        except SQLAlchemyError as e:
            self.local_db.rollback()
            logger.error(f"❌ Device store write failed for {collection} {record_id}: {e}")
            try:
                self._write_emergency(collection, record)
            except OSError as emergency_error:
                logger.error(f"❌ CRITICAL: emergency storage failed for {record_id}: {emergency_error}")
                return FailsafeResult(success=False, data=record, error=f"All storage methods failed: {e}")
            logger.warning(f"⚠️ {collection} {record_id} kept in emergency storage only")
            return FailsafeResult(success=True, data=record, error=f"Device store unavailable: {e}")

        synced, error = self._push(collection, record)
        self._checkpoint()
        return FailsafeResult(success=True, data=record, error=error, synced=synced)

    def _write_local(self, collection: str, record: dict) -> None:
        row = self.local_db.get(LocalRecord, (collection, record["id"]))
        if row is None:
            row = LocalRecord(collection=collection, id=record["id"], retry_count=0)
            self.local_db.add(row)
        row.payload = dict(record)
        row.synced = False
        row.synced_at = None
        row.saved_at = utcnow()
        self.local_db.commit()

    def _write_emergency(self, collection: str, record: dict) -> None:
        self.emergency_dir.mkdir(parents=True, exist_ok=True)
        minimal = {
            "collection": collection,
            "id": record.get("id"),
            "employee_id": record.get("employee_id"),
            "timestamp": record.get("timestamp") or record.get("clock_in"),
            "category": record.get("category"),
            "emergency": True,
        }
        path = self.emergency_dir / f"{collection}_{record['id']}.json"
        path.write_text(json.dumps(minimal))

    def _push(self, collection: str, record: dict) -> tuple[bool, Optional[str]]:
        upsert = self.upserters.get(collection)
        if upsert is None:
            return False, None
        try:
            upsert(record)
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Cloud upsert failed for {collection} {record['id']}, queued for sync: {e}")
            self._mark_failed(collection, record["id"], str(e))
            return False, str(e)
        self._mark_synced(collection, record["id"])
        return True, None

    def _mark_synced(self, collection: str, record_id: str) -> None:
        row = self.local_db.get(LocalRecord, (collection, record_id))
        if row is not None:
            row.synced = True
            row.synced_at = utcnow()
            row.last_error = None
            self.local_db.commit()

    def _mark_failed(self, collection: str, record_id: str, error: str) -> None:
        row = self.local_db.get(LocalRecord, (collection, record_id))
        if row is not None:
            row.retry_count = (row.retry_count or 0) + 1
            row.last_error = error
            self.local_db.commit()

    def _checkpoint(self) -> None:
        self.kv.set(
            LAST_BACKUP_KEY,
            {
                "timestamp": utcnow().isoformat(),
                "surveys": self._count(SURVEYS),
                "time_entries": self._count(TIME_ENTRIES),
            },
        )

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get(self, collection: str, record_id: str) -> Optional[dict]:
        row = self.local_db.get(LocalRecord, (collection, record_id))
        return dict(row.payload) if row is not None else None

    def local_records(self, collection: str) -> list[dict]:
        rows = self.local_db.query(LocalRecord).filter(LocalRecord.collection == collection).all()
        return [dict(row.payload) for row in rows]

    def pending(self, collection: Optional[str] = None) -> list[LocalRecord]:
        """The sync queue, oldest first"""
        query = self.local_db.query(LocalRecord).filter(LocalRecord.synced.is_(False))
        if collection:
            query = query.filter(LocalRecord.collection == collection)
        return query.order_by(LocalRecord.saved_at.asc()).all()

    def remove(self, collection: str, record_id: str) -> None:
        row = self.local_db.get(LocalRecord, (collection, record_id))
        if row is not None:
            self.local_db.delete(row)
            self.local_db.commit()

    def emergency_records(self) -> list[dict]:
        if not self.emergency_dir.exists():
            return []
        records = []
        for path in sorted(self.emergency_dir.glob("*.json")):
            try:
                records.append(json.loads(path.read_text()))
            except (OSError, ValueError) as e:
                logger.error(f"❌ Unreadable emergency record {path.name}: {e}")
        return records

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync_to_cloud(self) -> dict[str, dict[str, int]]:
        """Replay every queued record; rows are only marked, never dropped"""
        results: dict[str, dict[str, int]] = {}
        queue = self.pending()
        if not queue:
            return results

        logger.info(f"🔄 Syncing {len(queue)} queued records to cloud")
        for row in queue:
            upsert = self.upserters.get(row.collection)
            if upsert is None:
                continue
            stats = results.setdefault(row.collection, {"synced": 0, "failed": 0})
            try:
                upsert(dict(row.payload))
            except SQLAlchemyError as e:
                row.retry_count = (row.retry_count or 0) + 1
                row.last_error = str(e)
                stats["failed"] += 1
            else:
                row.synced = True
                row.synced_at = utcnow()
                row.last_error = None
                stats["synced"] += 1
            self.local_db.commit()

        for collection, stats in results.items():
            logger.info(f"✅ {collection}: {stats['synced']} synced, {stats['failed']} failed")
        return results

    def prune_synced(self, older_than_days: int) -> int:
        cutoff = utcnow() - timedelta(days=older_than_days)
        deleted = (
            self.local_db.query(LocalRecord)
            .filter(LocalRecord.synced.is_(True), LocalRecord.saved_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.local_db.commit()
        if deleted:
            logger.info(f"🧹 Pruned {deleted} synced local records older than {older_than_days} days")
        return deleted

    def clear_pending(self) -> int:
        deleted = (
            self.local_db.query(LocalRecord)
            .filter(LocalRecord.synced.is_(False))
            .delete(synchronize_session=False)
        )
        self.local_db.commit()
        logger.warning(f"⚠️ Cleared {deleted} records from the sync queue")
        return deleted

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def _count(self, collection: str) -> int:
        return self.local_db.query(LocalRecord).filter(LocalRecord.collection == collection).count()

    def health(self) -> dict[str, Any]:
        try:
            report = {
                "healthy": True,
                "surveys_stored": self._count(SURVEYS),
                "time_entries_stored": self._count(TIME_ENTRIES),
                "queued_for_sync": len(self.pending()),
                "last_backup": (self.kv.get(LAST_BACKUP_KEY) or {}).get("timestamp"),
                "emergency_records": len(self.emergency_records()),
            }
        except SQLAlchemyError as e:
            logger.error(f"❌ Storage health check failed: {e}")
            return {
                "healthy": False,
                "surveys_stored": 0,
                "time_entries_stored": 0,
                "queued_for_sync": 0,
                "last_backup": None,
                "emergency_records": len(self.emergency_records()),
            }
        return report


def emergency_dir_writable(path: str = EMERGENCY_STORAGE_DIR) -> bool:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        return False
    return os.access(path, os.W_OK)
