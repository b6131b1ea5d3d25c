"""Liveness and readiness probes.

/health always answers 200 while the process can respond; the body's
``status`` says whether a backing service is impaired.  Redis is
optional (the snapshot cache falls back to memory), so /ready never
fails on its account.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from redis.exceptions import RedisError

from coursetrack.db import redis as redis_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    pool = redis_db.redis_pool
    if pool is not None:
        try:
            await pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except (RedisError, OSError) as e:
            logger.warning("Redis health check failed: %s", e)
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)
