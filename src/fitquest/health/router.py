"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.catalog import get_catalog
from fitquest.config import get_settings
from fitquest.database import get_session
from fitquest.redis_client import get_optional_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> JSONResponse:
    """Readiness probe.

    Checks the database, Redis when it is in use, and that the catalog
    loaded. Answers 503 while any check fails so the pod is taken out of
    rotation.
    """
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    redis = get_optional_redis()
    if redis is not None:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    checks["catalog"] = "ok" if len(get_catalog()) else "error: empty"
    sync = getattr(request.app.state, "preference_sync", None)
    if sync is None:
        checks["preference_sync"] = "error: not started"
    else:
        checks["preference_sync"] = "ok" if sync.broker.running else "error: disconnected"

    ready = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
        "preference_sync_backend": settings.preference_sync_backend,
    }
