# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error taxonomy and the FastAPI handlers that turn it into the response envelope.

    not-found        → 404
    invalid-input    → 400
    unauthorized     → 401
    conflict         → 409  (duplicate business key, stale version)
    upstream-failure → 500  (database)

Webhook delivery failures never reach this module; the notifier swallows them.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from incident_dashboard.core.logging import get_logger

logger = get_logger(__name__)


class DashboardError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IncidentNotFound(DashboardError):
    status_code = 404

    def __init__(self, message: str = "Incident not found"):
        super().__init__(message)


class InvalidInput(DashboardError):
    status_code = 400


class Unauthorized(DashboardError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class DuplicateIncident(DashboardError):
    status_code = 409

    def __init__(self, message: str = "Incident ID already exists"):
        super().__init__(message)


class StaleIncident(DashboardError):
    status_code = 409

    def __init__(self, message: str = "Incident was modified by someone else, reload and retry"):
        super().__init__(message)


class UpstreamFailure(DashboardError):
    status_code = 500


def _error_body(message: str) -> dict:
    return {"success": False, "error": message}


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"Invalid request body: {location + ': ' if location else ''}{first.get('msg', '')}"
        else:
            message = "Invalid request body"
        return JSONResponse(status_code=400, content=_error_body(message))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))
