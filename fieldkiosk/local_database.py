"""
On-device SQLite store.

Kept on a separate engine and declarative base from the hosted database so
that local writes keep working while the cloud is unreachable.
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

from .config import LOCAL_DATABASE_URL
from .database import LOG_SLOW_QUERIES, watch_slow_queries

logger = logging.getLogger(__name__)

local_engine = create_engine(
    LOCAL_DATABASE_URL,
    connect_args={"check_same_thread": False},
    echo=False,
)


@event.listens_for(local_engine, "connect")
def _sqlite_pragmas(dbapi_connection, _record):
    # WAL: readers are not blocked by the sync sweep
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


if LOG_SLOW_QUERIES:
    watch_slow_queries(local_engine, "device store")
logger.info("✅ Local device store engine created")

LocalSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=local_engine)
LocalBase = declarative_base()


def get_local_db():
    db = LocalSessionLocal()
    try:
        yield db
    finally:
        db.close()
