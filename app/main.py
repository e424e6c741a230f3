import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.deps import engine
from app.api.routers.bookings import router as bookings_router
from app.api.routers.health import router as health_router
from app.api.routers.listings import router as listings_router
from app.api.routers.webhooks import router as webhooks_router
from app.config import get_settings
from app.domain.errors import (
    DomainError,
    GatewayError,
    NotFoundError,
)
from app.infrastructure.db.tables import metadata

settings = get_settings()

# Configure structured logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB tables (for dev/demo purposes)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield
    # Cleanup
    await engine.dispose()

app = FastAPI(
    title="Bookings API",
    version="0.1.0",
    lifespan=lifespan
)


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, GatewayError):
        return 502
    return 400


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """
    Map domain errors to HTTP responses.

    Validation and webhook verification failures are 400, missing resources 404,
    provider failures 502 (the client may retry).
    """
    status_code = _status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request failed with domain error",
        extra={
            "code": exc.code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    # Log the full error with context for internal debugging
    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    # Return a generic error to the client without exposing internal details
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
app.include_router(webhooks_router, prefix="/api/v1", tags=["Webhooks"])
app.include_router(listings_router, prefix="/api/v1", tags=["Listings"])
