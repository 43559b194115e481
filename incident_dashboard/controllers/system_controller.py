# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Liveness, readiness and the Prometheus scrape endpoint."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from incident_dashboard.core.dependencies import Container, get_container
from incident_dashboard.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health")
def liveness(container: Container = Depends(get_container)):
    settings = container.settings
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "feed_connections": container.connections.connection_count,
    }


@router.get("/health/ready")
def readiness(container: Container = Depends(get_container)):
    """503 until the incident store answers."""
    try:
        container.repo.verify_connection()
    except Exception as exc:
        logger.warning("Readiness check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": "unreachable", "error": str(exc)},
        )
    return {"status": "ok", "database": "connected"}


@router.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
