# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dependency wiring. Components are built once by create_app and hung on
app.state; handlers reach them through the functions below.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, WebSocket
from sqlalchemy.engine import Engine

from incident_dashboard.core.config import Settings
from incident_dashboard.core.database import create_db_engine
from incident_dashboard.realtime.change_feed import ChangeFeed
from incident_dashboard.realtime.connection_manager import ConnectionManager
from incident_dashboard.repositories.incident_repository import IncidentRepository
from incident_dashboard.services.incident_service import IncidentService
from incident_dashboard.services.notifier import WebhookNotifier


@dataclass
class Container:
    settings: Settings
    engine: Engine
    repo: IncidentRepository
    feed: ChangeFeed
    notifier: WebhookNotifier
    service: IncidentService
    connections: ConnectionManager


def build_container(settings: Settings, engine: Optional[Engine] = None,
                    notifier: Optional[WebhookNotifier] = None) -> Container:
    engine = engine if engine is not None else create_db_engine(settings)
    feed = ChangeFeed()
    repo = IncidentRepository(engine, feed)
    notifier = notifier or WebhookNotifier(
        sync_url=settings.SHEETS_SYNC_WEBHOOK_URL,
        notify_url=settings.STATUS_NOTIFY_WEBHOOK_URL,
        timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
    )
    connections = ConnectionManager(
        max_connections=settings.WS_MAX_CONNECTIONS,
        queue_size=settings.WS_QUEUE_SIZE,
        heartbeat_interval=settings.WS_HEARTBEAT_INTERVAL,
    )
    feed.subscribe(connections.publish)
    return Container(
        settings=settings,
        engine=engine,
        repo=repo,
        feed=feed,
        notifier=notifier,
        service=IncidentService(repo, notifier),
        connections=connections,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_settings(request: Request) -> Settings:
    return request.app.state.container.settings


def get_incident_service(request: Request) -> IncidentService:
    return request.app.state.container.service


def get_ws_container(websocket: WebSocket) -> Container:
    return websocket.app.state.container
