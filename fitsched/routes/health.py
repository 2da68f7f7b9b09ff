# fitsched/routes/health.py
"""
Health check and Prometheus exposition endpoints.
"""

from datetime import datetime, timezone
import logging
from typing import Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import __version__
from ..api.dependencies import get_cache_service_dep, get_db
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..services.cache_service import CacheService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])
metrics_router = APIRouter(tags=["monitoring"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: datetime
    checks: Dict[str, bool]
    cache_backend: str


@router.get("/health", response_model=HealthCheckResponse)
def health_check(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
) -> HealthCheckResponse:
    """Report database connectivity and the active cache backend."""
    try:
        db.execute(text("SELECT 1"))
        db_status = True
        status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = False
        status = "degraded"

    return HealthCheckResponse(
        status=status,
        service="fitsched API",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks={"database": db_status},
        cache_backend=cache.backend,
    )


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus exposition of the service registry."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
