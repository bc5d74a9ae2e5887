"""Observability API endpoints.

Provides the Prometheus scrape endpoint and a health check.
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..database import get_db
from .health import check_database_health, HealthStatus

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics in text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get("/health", summary="Health check endpoint")
def health_check(db: Session = Depends(get_db)):
    """Report database health; 503 when the database is unreachable."""
    db_health = check_database_health(db)
    status_code = 200 if db_health.status == HealthStatus.HEALTHY else 503

    return JSONResponse(
        content={
            "status": db_health.status.value,
            "components": {
                "database": {
                    "status": db_health.status.value,
                    "message": db_health.message,
                    "latency_ms": db_health.latency_ms,
                }
            },
        },
        status_code=status_code
    )
