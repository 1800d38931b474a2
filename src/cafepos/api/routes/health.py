from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import Engine

from cafepos.api.dependencies import get_db_engine
from cafepos.infrastructure.cache.cache_store import ping_redis, redis_url
from cafepos.infrastructure.db.session import ping_database

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response, engine: Engine = Depends(get_db_engine)) -> dict[str, object]:
    database_ready = ping_database(engine, timeout_seconds=1.0)
    redis_ready = ping_redis(timeout_seconds=1.0) if redis_url() else True

    if database_ready and redis_ready:
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "unavailable",
        "checks": {"database": database_ready, "redis": redis_ready},
    }
