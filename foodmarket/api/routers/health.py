# foodmarket/api/routers/health.py
from datetime import datetime, timezone

import redis
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from foodmarket.api.deps import get_app_settings
from foodmarket.utils.logging import get_logger
from foodmarket.utils.settings import Settings

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def _check_database(request: Request) -> str:
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        return "fail"


def _check_redis(settings: Settings) -> str:
    try:
        client = redis.Redis.from_url(settings.redis_url, socket_connect_timeout=1, socket_timeout=1)
        client.ping()
        return "ok"
    except redis.RedisError as e:
        logger.warning(f"Readiness: redis check failed: {e}")
        return "fail"


@router.get("/health/ready")
def ready(request: Request, settings: Settings = Depends(get_app_settings)):
    checks = {
        "database": _check_database(request),
        "redis": _check_redis(settings),
    }
    ok = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ok" if ok else "fail", "checks": checks},
    )
