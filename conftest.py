# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: an in-memory repository and an app wired around it."""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from incident_dashboard.core.config import Settings
from incident_dashboard.core.errors import DuplicateIncident, IncidentNotFound, StaleIncident
from incident_dashboard.realtime.change_feed import ChangeFeed
from incident_dashboard.schemas import ChangeEvent, EDITABLE_FIELDS
from incident_dashboard.services.incident_service import IncidentService
from incident_dashboard.services.notifier import WebhookNotifier
from main import create_app

BASE_TIME = datetime(2026, 1, 19, 8, 0, tzinfo=timezone.utc)


class FakeIncidentRepository:
    """Dict-backed stand-in with the same contract as IncidentRepository."""

    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed or ChangeFeed()
        self.rows: Dict[str, Dict[str, Any]] = {}
        self._tick = 0

    def _now(self) -> str:
        self._tick += 1
        return (BASE_TIME + timedelta(seconds=self._tick)).isoformat()

    def list_incidents(self, status=None, search=None, limit=100,
                       offset=0) -> Tuple[int, List[Dict[str, Any]]]:
        rows = sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)
        if status and status != "all":
            rows = [r for r in rows if r["status"] == status]
        if search:
            rows = [r for r in rows if search.lower() in r["incident_id"].lower()]
        return len(rows), [dict(r) for r in rows[offset:offset + limit]]

    def get_incident(self, id):
        row = self.rows.get(id)
        return dict(row) if row else None

    def get_by_incident_id(self, incident_id):
        return next((dict(r) for r in self.rows.values() if r["incident_id"] == incident_id), None)

    def count_by_status(self, status):
        return sum(1 for r in self.rows.values() if r["status"] == status)

    def insert_incident(self, fields):
        if self.get_by_incident_id(fields["incident_id"]):
            raise DuplicateIncident()
        now = self._now()
        row = {c: None for c in EDITABLE_FIELDS}
        row.update(fields, id=str(uuid.uuid4()), created_at=now, updated_at=now)
        self.rows[row["id"]] = row
        self.feed.publish(ChangeEvent(event_type="INSERT", new=dict(row)))
        return dict(row)

    def update_incident(self, id, fields, expected_updated_at=None):
        row = self.rows.get(id)
        if row is None:
            raise IncidentNotFound()
        if expected_updated_at and row["updated_at"] != expected_updated_at:
            raise StaleIncident()
        row.update({k: v for k, v in fields.items() if k in EDITABLE_FIELDS}, updated_at=self._now())
        self.feed.publish(ChangeEvent(event_type="UPDATE", new=dict(row), old={"id": id}))
        return dict(row)

    def update_by_incident_id(self, incident_id, fields):
        existing = self.get_by_incident_id(incident_id)
        if existing is None:
            raise IncidentNotFound()
        return self.update_incident(existing["id"], fields)

    def delete_incident(self, id):
        row = self.rows.pop(id, None)
        if row is not None:
            self.feed.publish(ChangeEvent(event_type="DELETE", old=dict(row)))
        return row

    def verify_connection(self):
        pass

    def dispose(self):
        pass


@pytest.fixture
def notifier():
    mock = MagicMock(spec=WebhookNotifier)
    mock.notifications_enabled = True
    return mock


@pytest.fixture
def dashboard(notifier):
    """App whose container runs on the in-memory repository."""
    app = create_app(Settings(), engine=MagicMock(), notifier=notifier)
    container = app.state.container
    repo = FakeIncidentRepository(container.feed)
    container.repo = repo
    container.service = IncidentService(repo, notifier)
    client = TestClient(app)
    client.container = container
    client.repo = repo
    return client
