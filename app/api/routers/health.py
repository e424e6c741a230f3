"""
Health check endpoints for the bookings service.

- /health, /health/live: process is up, no dependencies touched
- /health/db: SELECT 1 against the booking store (skipped in in-memory mode)
- /health/ready: store reachable and at least one payment provider usable
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_bundle
from app.api.deps import get_db_session
from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "bookings-api"


async def _database_status(settings: Settings, session: AsyncSession) -> str:
    if settings.use_in_memory:
        return "not_used"
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
    except Exception as e:
        logger.error("Database health check failed", exc_info=e)
        return "unhealthy"
    return "healthy"


@router.get("/health")
async def health_check():
    """Liveness probe; 200 while the process is running."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/live")
async def health_check_live():
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/db")
async def health_check_db(
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Booking store connectivity.

    Returns 503 when the SQL store does not answer. In in-memory mode there is
    no database to probe and the check reports "not_used".
    """
    status = await _database_status(settings, session)
    body = {"status": status, "component": "database"}
    if status == "unhealthy":
        body["error"] = "Database connection failed"
        return JSONResponse(status_code=503, content=body)
    return body


@router.get("/health/ready")
async def health_check_ready(
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_db_session),
    bundle: dict = Depends(get_bundle),
):
    """
    Readiness probe.

    Ready means the store answers and at least one payment provider has
    credentials. Missing webhook secrets are reported but do not block
    traffic: checkouts still open, confirmations will be rejected.
    """
    providers = bundle["gateway_selector"].configuration_status()
    health_status = {
        "status": "ready",
        "store": "in_memory" if settings.use_in_memory else "sql",
        "checks": {
            "database": await _database_status(settings, session),
            "payment_providers": providers,
        },
    }

    usable = [name for name, status in providers.items() if status["credentials"]]
    if health_status["checks"]["database"] == "unhealthy" or not usable:
        logger.error(
            "Readiness check failed",
            extra={"database": health_status["checks"]["database"], "providers": providers},
        )
        health_status["status"] = "not_ready"
        return JSONResponse(status_code=503, content=health_status)

    unsigned = [name for name, status in providers.items() if not status["webhook_secret"]]
    if unsigned:
        logger.warning("Webhook verification not configured", extra={"providers": unsigned})

    return health_status
