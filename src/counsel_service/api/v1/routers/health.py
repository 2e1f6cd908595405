from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from counsel_service.infrastructure.db.session import engine

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(request: Request) -> dict[str, object]:
    """Liveness. Also reports how many live sessions this process holds."""
    rooms = getattr(request.app.state, "rooms", None)
    return {"status": "ok", "live_sessions": rooms.session_count() if rooms else 0}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as exc:  # noqa: BLE001
        logger.warning("Readiness: postgres unavailable: %s", exc)
        checks["postgres"] = str(exc)

    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        checks["redis"] = "not connected"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:  # noqa: BLE001
            logger.warning("Readiness: redis unavailable: %s", exc)
            checks["redis"] = str(exc)

    ready = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "unavailable", "checks": checks},
    )
