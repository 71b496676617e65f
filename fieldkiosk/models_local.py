"""Tables that live in the on-device store only"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from .local_database import LocalBase
from .models import utcnow


class LocalRecord(LocalBase):
    """
    Local copy of a survey or time entry.

    Rows with synced=False form the sync queue: they are only marked synced
    after the hosted database confirmed the upsert.
    """

    __tablename__ = "local_records"

    collection = Column(String(30), primary_key=True)  # surveys, time_entries
    id = Column(String(36), primary_key=True)
    payload = Column(JSON, nullable=False)
    synced = Column(Boolean, nullable=False, default=False, index=True)
    retry_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    saved_at = Column(DateTime, nullable=False, default=utcnow)
    synced_at = Column(DateTime, nullable=True)


class OutboundSyncItem(LocalBase):
    """Pending Salesforce (survey) or Zapier (appointment) hand-off"""

    __tablename__ = "outbound_sync_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String(20), nullable=False)  # survey, appointment
    record_id = Column(String(36), nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    retry_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)


class FailedSyncItem(LocalBase):
    """Outbound items that exhausted their retries"""

    __tablename__ = "failed_sync_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String(20), nullable=False)
    record_id = Column(String(36), nullable=False)
    payload = Column(JSON, nullable=False)
    retry_count = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    failed_at = Column(DateTime, nullable=False, default=utcnow)


class SyncLog(LocalBase):
    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    synced = Column(Integer, nullable=False, default=0)
    failed = Column(Integer, nullable=False, default=0)
    duplicates = Column(Integer, nullable=False, default=0)
    queue_size = Column(Integer, nullable=False, default=0)
    errors = Column(JSON, default=list)


class KeyValue(LocalBase):
    __tablename__ = "local_kv"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
