# type: ignore
# pyright: reportGeneralTypeIssues=false
"""
Incident Dashboard Service
==========================
Backs the operator dashboard: lists and filters incidents, moves them through
New → In Progress → Resolved → Closed, accepts upserts from the workflow
engine's webhook, and pushes row changes to connected dashboards.

Every update is pushed to the sheet-sync webhook, and status changes to the
status-change notifier, after the response has been sent.

Port: 8000
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from incident_dashboard.controllers import (
    feed_controller, incident_controller, system_controller, webhook_controller,
)
from incident_dashboard.core.config import Settings
from incident_dashboard.core.database import ensure_schema
from incident_dashboard.core.dependencies import build_container
from incident_dashboard.core.errors import register_exception_handlers
from incident_dashboard.core.logging import get_logger, set_level
from incident_dashboard.middleware import MetricsMiddleware, RequestIDMiddleware
from incident_dashboard.services.notifier import WebhookNotifier

logger = get_logger("incident-dashboard")


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None,
               notifier: Optional[WebhookNotifier] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    set_level(settings.LOG_LEVEL)
    container = build_container(settings, engine=engine, notifier=notifier)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        try:
            if settings.AUTO_CREATE_SCHEMA:
                ensure_schema(container.engine)
            container.service.seed_gauges()
        except Exception:
            logger.warning("Could not seed gauges, DB may not be ready yet")
        logger.info("Service started webhook_notifications=%s",
                    container.notifier.notifications_enabled)
        yield
        await container.connections.close_all()
        container.repo.dispose()
        logger.info("Shutting down, connection pool disposed")

    app = FastAPI(
        title="Incident Dashboard Service",
        description="Incident tracking with realtime updates and workflow webhooks.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(system_controller.router)
    app.include_router(feed_controller.router)
    app.include_router(incident_controller.router)
    app.include_router(webhook_controller.router)
    return app


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000)
