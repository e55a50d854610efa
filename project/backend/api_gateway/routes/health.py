"""
Health check route.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api_gateway.dependencies import get_db, get_redis, get_storage
from shared.config import Settings, get_settings
from shared.database import DatabaseClient
from shared.logging import get_logger
from shared.redis_client import RedisClient
from shared.storage import StorageClient

logger = get_logger(__name__)

router = APIRouter()

APP_VERSION = "1.0.0"
START_TIME = time.monotonic()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/health")
async def health_check(
    db: DatabaseClient = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    redis_client: Optional[RedisClient] = Depends(get_redis),
):
    """
    Report database and storage reachability, plus Redis when configured.
    """
    checks = {
        "server": "ok",
        "database": "ok" if await db.health_check() else "error",
        "storage": "ok" if await storage.health_check() else "error",
    }
    if redis_client is not None:
        checks["redis"] = "ok" if await redis_client.health_check() else "error"
    healthy = all(value == "ok" for value in checks.values())
    if not healthy:
        logger.warning("Health check degraded", extra={"checks": checks})

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        headers=NO_CACHE_HEADERS,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": time.monotonic() - START_TIME,
            "environment": settings.environment,
            "version": APP_VERSION,
            "checks": checks,
        },
    )
