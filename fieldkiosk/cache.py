"""
Redis caching utilities
Holds Salesforce Lead metadata so the field-mapping screen does not trigger
a describe call per request. Fails open: when Redis is down or not
configured every lookup is a miss.
"""

import json
import logging
import os
import time
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "fieldkiosk:"

redis_client: Optional[redis.Redis] = None


def _mask_url(redis_url: str) -> str:
    if "@" not in redis_url:
        return "****"
    scheme = redis_url.split("://", 1)[0]
    return f"{scheme}://****@{redis_url.rsplit('@', 1)[1]}"


def get_redis_client() -> redis.Redis:
    """
    Get or create the shared Redis client from REDIS_URL, or from the
    REDIS_HOST / REDIS_PORT / REDIS_PASSWORD settings.
    """
    global redis_client
    if redis_client is not None:
        return redis_client

    options = {
        "decode_responses": True,
        "socket_connect_timeout": 5,
        "socket_timeout": 10,
        "retry_on_timeout": True,
        "health_check_interval": 30,
    }
    redis_url = os.getenv("REDIS_URL")
    redis_host = os.getenv("REDIS_HOST")
    if redis_url:
        logger.info(f"📡 Using Redis URL connection: {_mask_url(redis_url)}")
        client = redis.from_url(redis_url, **options)
    elif redis_host:
        client = redis.Redis(
            host=redis_host,
            port=int(os.getenv("REDIS_PORT", "6379")),
            password=os.getenv("REDIS_PASSWORD"),
            db=int(os.getenv("REDIS_DB", "0")),
            ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
            **options,
        )
    else:
        raise RuntimeError("Redis not configured (set REDIS_URL or REDIS_HOST)")

    client.ping()
    redis_client = client
    logger.info("✅ Redis connected successfully")
    return redis_client


class Cache:
    """JSON values under the fieldkiosk: key prefix"""

    def __init__(self, prefix: str = KEY_PREFIX):
        self.prefix = prefix
        self._client: Optional[redis.Redis] = None

    def _connection(self) -> Optional[redis.Redis]:
        if self._client is None:
            try:
                self._client = get_redis_client()
            except (redis.RedisError, RuntimeError) as e:
                logger.debug(f"⚠️ Redis cache unavailable: {e}")
        return self._client

    def get(self, key: str) -> Optional[Any]:
        client = self._connection()
        if client is None:
            return None
        try:
            raw = client.get(self.prefix + key)
        except redis.RedisError as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None
        if raw is None:
            logger.debug(f"Cache miss: {key}")
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"⚠️ Dropping unreadable cache entry {key}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        client = self._connection()
        if client is None:
            return False
        try:
            client.setex(self.prefix + key, ttl, json.dumps(value))
        except (redis.RedisError, TypeError) as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False
        logger.debug(f"Cached {key} for {ttl}s")
        return True

    def delete(self, key: str) -> bool:
        client = self._connection()
        if client is None:
            return False
        try:
            client.delete(self.prefix + key)
        except redis.RedisError as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False
        return True

    def ping(self) -> dict[str, Any]:
        """Connectivity details for the health endpoint; raises when Redis is unreachable"""
        client = get_redis_client()
        started = time.perf_counter()
        client.ping()
        elapsed_ms = (time.perf_counter() - started) * 1000
        info = client.info()
        return {
            "connected": True,
            "response_time_ms": round(elapsed_ms, 2),
            "version": info.get("redis_version", "unknown"),
            "used_memory_human": info.get("used_memory_human", "unknown"),
        }


cache = Cache()
