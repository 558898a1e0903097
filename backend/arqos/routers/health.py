"""Liveness and readiness checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from arqos.config import settings
from arqos.database import engine
from arqos.onboarding.snapshot import get_redis

router = APIRouter(tags=["health"])


async def _ping_database() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _ping_redis() -> None:
    client = await get_redis()
    await client.ping()


_CHECKS = {"database": _ping_database, "redis": _ping_redis}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check():
    """Liveness: the process answers, no backing service is touched."""
    return {
        "status": "ok",
        "service": "ArqOS",
        "environment": settings.environment,
        "timestamp": _now(),
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness: 503 until both the database and Redis answer."""
    checks = {}
    for name, check in _CHECKS.items():
        try:
            await check()
            checks[name] = "ok"
        except Exception as exc:
            checks[name] = f"error: {str(exc)[:100]}"

    ready = all(result == "ok" for result in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "unavailable",
            "service": "ArqOS",
            "checks": checks,
            "timestamp": _now(),
        },
    )
