"""quotematch - Main FastAPI Application

Catalog matching service for free-text quote and invoice line items.

This module creates and configures the FastAPI application, including:
- Matching, decision and alias routers
- Request ID middleware
- Exception handlers mapping matcher errors to HTTP status codes
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .errors import InputError, LedgerError, StateTransitionError, TenantIsolationError
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .matching.router import router as matching_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("quotematch API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set, semantic signal disabled")

    yield

    logger.info("quotematch API shutting down...")


app = FastAPI(
    title="quotematch API",
    description="Tenant-scoped catalog matching for quote and invoice line items",
    version="0.1.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestIDMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError) -> JSONResponse:
    logger.warning(f"Invalid input on {request.method} {request.url.path}: {exc}")
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_input", str(exc))


@app.exception_handler(TenantIsolationError)
async def tenant_isolation_handler(request: Request, exc: TenantIsolationError) -> JSONResponse:
    """Cross-tenant access looks exactly like a missing resource."""
    logger.warning(f"Cross-tenant access blocked on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Resource not found"})


@app.exception_handler(StateTransitionError)
async def state_transition_handler(request: Request, exc: StateTransitionError) -> JSONResponse:
    logger.info(f"Rejected status change on {request.method} {request.url.path}: {exc}")
    return _error(status.HTTP_409_CONFLICT, "invalid_transition", str(exc))


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    logger.error(f"Ledger error on {request.method} {request.url.path}", exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "ledger_error", "The decision could not be recorded.")


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "database_error",
        "A database error occurred. Please try again later.",
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(observability_router)
app.include_router(matching_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "quotematch API",
        "version": "0.1.0",
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quotematch.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )
