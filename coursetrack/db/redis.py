"""Redis connection management.

When REDIS_URL is configured the course snapshot cache is shared across
API instances through this pool; without it (local dev, tests) the
cache falls back to an in-process dict and no Redis server is needed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from coursetrack.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Verify the connection on startup and release the pool on shutdown.

    An unreachable Redis is logged and startup continues, so health
    checks can report it as degraded instead of the process crashing.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured; snapshot cache is in-memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
