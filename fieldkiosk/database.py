"""
Hosted (cloud) database.

Every kiosk write reaches this engine only after the device store has the
record, so connection failures here are expected and must stay cheap: a
short connect timeout and pre-ping keep an outage from stalling requests.
"""

import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

CLOUD_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
CLOUD_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
CLOUD_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
CLOUD_CONNECT_TIMEOUT = int(os.getenv("DB_CONNECT_TIMEOUT", "5"))
SLOW_QUERY_SECONDS = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))
LOG_SLOW_QUERIES = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"


def build_cloud_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Development fallback when no hosted database is configured
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=CLOUD_POOL_RECYCLE,
        pool_size=CLOUD_POOL_SIZE,
        max_overflow=CLOUD_MAX_OVERFLOW,
        connect_args={"connect_timeout": CLOUD_CONNECT_TIMEOUT},
    )


def watch_slow_queries(target: Engine, label: str) -> None:
    @event.listens_for(target, "before_cursor_execute")
    def _start(conn, _cursor, _statement, _parameters, _context, _executemany):
        conn.info.setdefault("fk_query_started", []).append(time.perf_counter())

    @event.listens_for(target, "after_cursor_execute")
    def _finish(conn, _cursor, statement, _parameters, _context, _executemany):
        elapsed = time.perf_counter() - conn.info["fk_query_started"].pop()
        if elapsed > SLOW_QUERY_SECONDS:
            logger.warning(f"🐌 Slow {label} query ({elapsed:.2f}s): {statement[:200]}...")


try:
    engine = build_cloud_engine(DATABASE_URL)
except Exception as e:
    logger.error(f"❌ Failed to create cloud database engine: {e}")
    raise
logger.info("✅ Cloud database engine ready")

if LOG_SLOW_QUERIES:
    watch_slow_queries(engine, "cloud")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
