import logging
import os
from contextlib import asynccontextmanager

import redis
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

# Import all models so their tables are registered on the metadata
from . import (
    models,  # noqa: F401
    models_local,  # noqa: F401
    models_notifications,  # noqa: F401
    models_stats,  # noqa: F401
)
from .cache import cache
from .database import Base, engine
from .domain.employees.router import compensation_router
from .domain.employees.router import router as employees_router
from .domain.messaging.router import router as messaging_router
from .domain.scheduling.router import router as scheduling_router
from .domain.surveys.router import router as surveys_router
from .domain.timeclock.router import router as timeclock_router
from .local_database import LocalBase, get_local_db, local_engine
from .routes.adp_bridge import router as adp_bridge_router
from .routes.notifications import router as notifications_router
from .routes.reports import router as reports_router
from .routes.salesforce import router as salesforce_router
from .routes.stats import router as stats_router
from .routes.sync import router as sync_router
from .storage.failsafe import FailsafeStorage, emergency_dir_writable

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Cloud database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            # The kiosk keeps writing to the device store while the cloud is down
            logger.error(f"Failed to create cloud database tables: {e}")

    LocalBase.metadata.create_all(bind=local_engine, checkfirst=True)
    logger.info("Device store tables ready")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Field Kiosk API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:8081,http://localhost:19006,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Kiosk data routes
app.include_router(surveys_router)
app.include_router(timeclock_router)
app.include_router(employees_router)
app.include_router(compensation_router)
app.include_router(scheduling_router)
app.include_router(messaging_router)
app.include_router(sync_router)

# Server-side functions
app.include_router(adp_bridge_router)
app.include_router(reports_router)
app.include_router(salesforce_router)
app.include_router(notifications_router)
app.include_router(stats_router)


@app.get("/")
def root():
    return {"message": "Field Kiosk API is running"}


@app.get("/health")
def health(local_db: Session = Depends(get_local_db)):
    storage = FailsafeStorage(local_db)
    storage_health = storage.health()
    return {
        "status": "healthy" if storage_health["healthy"] else "degraded",
        "storage": storage_health,
        "emergency_storage_writable": emergency_dir_writable(),
    }


@app.get("/health/redis")
async def redis_health_check():
    """Redis backs the arq worker queue and the Salesforce field cache"""
    try:
        return {"status": "healthy", "redis": cache.ping()}
    except (redis.RedisError, RuntimeError) as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}
