# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request-scoped middleware: X-Request-ID propagation and Prometheus HTTP metrics.
"""
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from incident_dashboard.core.logging import request_id_var
from incident_dashboard.metrics import HTTP_ERRORS, REQUEST_COUNT, REQUEST_LATENCY

REQUEST_ID_HEADER = "X-Request-ID"

# Static path segments; anything else in a path is an id.
KNOWN_SEGMENTS = frozenset({
    "incidents", "webhook", "incident", "feed", "health", "ready", "metrics",
})

# Scrapes and probes would drown out real traffic.
UNMETERED_PATHS = frozenset({
    "/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc",
})


def normalize_path(path: str) -> str:
    """Replace id segments with {param} to keep label cardinality bounded."""
    segments = [s for s in path.split("/") if s]
    if not segments:
        return "/"
    return "/" + "/".join(s if s in KNOWN_SEGMENTS else "{param}" for s in segments)


def _endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or normalize_path(request.url.path)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one; echo it and tag log records with it."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNMETERED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        method = request.method
        endpoint = _endpoint_label(request)
        status = str(response.status_code)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(elapsed)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(method=method, endpoint=endpoint, status=status).inc()
        return response
