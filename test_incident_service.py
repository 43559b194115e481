"""
Incident service against the in-memory repository
==================================================
Run:  pytest test_incident_service.py -v
"""
from unittest.mock import MagicMock

import pytest

from conftest import FakeIncidentRepository
from incident_dashboard.core.errors import DuplicateIncident, IncidentNotFound, InvalidInput, StaleIncident
from incident_dashboard.schemas import IncidentUpdate, VALID_STATUSES, WebhookIncidentPayload
from incident_dashboard.services.incident_service import IncidentService, UpdateOutcome
from incident_dashboard.services.notifier import WebhookNotifier


@pytest.fixture
def repo():
    return FakeIncidentRepository()


@pytest.fixture
def service(repo, notifier):
    return IncidentService(repo, notifier)


def _ingest(service, **fields):
    return service.ingest(WebhookIncidentPayload(**fields))


# ═══════════════════════════════════════════════════════════════════════════
# INGESTION
# ═══════════════════════════════════════════════════════════════════════════
class TestIngest:
    def test_create_then_redeliver_keeps_single_row(self, service, repo):
        first = _ingest(service, incident_id="INC-1", keterangan="Fiber cut")
        second = _ingest(service, incident_id="INC-1", keterangan="Fiber cut, crew dispatched")
        assert first.created is True
        assert second.created is False
        assert len(repo.rows) == 1
        assert second.incident["id"] == first.incident["id"]
        assert second.incident["description"] == "Fiber cut, crew dispatched"

    def test_redelivery_resets_absent_fields_to_defaults(self, service, repo):
        _ingest(service, incident_id="INC-R", impact="High", pic="Budi", keterangan="Fiber cut",
                nomor_wa="628123", status="done")
        outcome = _ingest(service, incident_id="INC-R")
        assert outcome.created is False
        assert outcome.incident["impact"] == "Unknown"
        assert outcome.incident["pic"] == "Unassigned"
        assert outcome.incident["description"] == ""
        assert outcome.incident["phone_number"] == ""
        assert outcome.incident["status"] == "New"
        assert outcome.incident["waktu_chat"]
        assert len(repo.rows) == 1

    def test_redelivery_over_http_resets_absent_fields(self, dashboard):
        first = dashboard.post("/webhook/incident", json={
            "incident_id": "INC-R", "impact": "High", "pic": "Budi", "status": "done"})
        assert first.json()["data"]["status"] == "Resolved"
        r = dashboard.post("/webhook/incident", json={"incident_id": "INC-R"})
        assert r.status_code == 200
        data = r.json()["data"]
        assert (data["impact"], data["pic"], data["status"]) == ("Unknown", "Unassigned", "New")

    def test_redelivery_updates_every_sent_field(self, service):
        _ingest(service, incident_id="INC-1", pic="Budi", status="In Progress")
        outcome = _ingest(service, incident_id="INC-1", pic="Sari", impact="Low", status="progress")
        assert outcome.incident["pic"] == "Sari"
        assert outcome.incident["impact"] == "Low"
        assert outcome.incident["status"] == "In Progress"

    def test_redelivery_can_change_status(self, service):
        _ingest(service, incident_id="INC-1")
        outcome = _ingest(service, incident_id="INC-1", status="closed")
        assert outcome.incident["status"] == "Closed"

    def test_defaults(self, service):
        incident = _ingest(service, incident_id=" INC-9 ").incident
        assert incident["incident_id"] == "INC-9"
        assert incident["status"] == "New"
        assert incident["description"] == ""
        assert incident["project_name"] == ""
        assert incident["phone_number"] == ""
        assert incident["incident_type"] == "Unknown"
        assert incident["impact"] == "Unknown"
        assert incident["pic"] == "Unassigned"
        assert incident["waktu_kejadian"]
        assert incident["waktu_chat"]

    def test_column_names_accepted(self, service):
        incident = _ingest(service, incident_id="INC-2", description="Packet loss",
                           incident_type="Network", phone_number="628111").incident
        assert incident["description"] == "Packet loss"
        assert incident["incident_type"] == "Network"
        assert incident["phone_number"] == "628111"

    def test_workflow_names_win_over_column_names(self, service):
        incident = _ingest(service, incident_id="INC-3", keterangan="from workflow",
                           description="from column").incident
        assert incident["description"] == "from workflow"

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_key_required(self, service, repo, key):
        with pytest.raises(InvalidInput, match="incident_id is required"):
            _ingest(service, incident_id=key)
        assert repo.rows == {}

    def test_numeric_key_is_stringified(self, service):
        assert _ingest(service, incident_id=20260119).incident["incident_id"] == "20260119"

    def test_unmapped_status_rejected_on_create(self, service, repo):
        with pytest.raises(InvalidInput):
            _ingest(service, incident_id="INC-4", status="escalated")
        assert repo.rows == {}

    def test_unmapped_status_rejected_on_update(self, service, repo):
        _ingest(service, incident_id="INC-4")
        with pytest.raises(InvalidInput):
            _ingest(service, incident_id="INC-4", status="escalated")
        assert repo.get_by_incident_id("INC-4")["status"] == "New"

    def test_stored_status_always_in_enum(self, service, repo):
        for i, status in enumerate(["open", "progress", "done", "tutup", None, ""]):
            _ingest(service, incident_id=f"INC-{i}", status=status)
        assert all(r["status"] in VALID_STATUSES for r in repo.rows.values())

    def test_lost_race_is_conflict(self, notifier):
        repo = MagicMock()
        repo.get_by_incident_id.return_value = None
        repo.insert_incident.side_effect = DuplicateIncident()
        with pytest.raises(DuplicateIncident):
            IncidentService(repo, notifier).ingest(WebhookIncidentPayload(incident_id="INC-1"))

    def test_ingest_sends_no_outbound_webhooks(self, service, notifier):
        _ingest(service, incident_id="INC-1", status="Resolved")
        notifier.sync_incident.assert_not_called()
        notifier.notify_status_change.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# UPDATE
# ═══════════════════════════════════════════════════════════════════════════
class TestUpdate:
    @pytest.fixture
    def incident(self, service):
        return _ingest(service, incident_id="INC-1", nomor_wa="628123",
                       keterangan="Router down").incident

    def test_update_returns_outcome(self, service, incident):
        outcome = service.update_incident(incident["id"], IncidentUpdate(status="Resolved"))
        assert isinstance(outcome, UpdateOutcome)
        assert outcome.status_changed
        assert outcome.previous["status"] == "New"
        assert outcome.incident["status"] == "Resolved"
        assert outcome.incident["updated_at"] > incident["updated_at"]

    def test_invalid_status_leaves_row_untouched(self, service, repo, incident):
        with pytest.raises(InvalidInput, match="Invalid status value"):
            service.update_incident(incident["id"], IncidentUpdate(status="Done"))
        assert repo.get_incident(incident["id"]) == incident

    def test_missing_row(self, service):
        with pytest.raises(IncidentNotFound):
            service.update_incident("8b7f1c1e-0000-4000-8000-000000000000",
                                    IncidentUpdate(status="Resolved"))

    def test_malformed_id_is_not_found(self, service):
        with pytest.raises(IncidentNotFound):
            service.update_incident("nope", IncidentUpdate(status="Resolved"))

    def test_empty_status_is_ignored(self, service, incident):
        outcome = service.update_incident(incident["id"], IncidentUpdate(status="", pic="Sari"))
        assert outcome.incident["status"] == "New"
        assert outcome.incident["pic"] == "Sari"

    def test_expected_version_matches(self, service, incident):
        update = IncidentUpdate(status="In Progress", expected_updated_at=incident["updated_at"])
        assert service.update_incident(incident["id"], update).incident["status"] == "In Progress"

    def test_expected_version_stale(self, service, incident):
        service.update_incident(incident["id"], IncidentUpdate(pic="Sari"))
        update = IncidentUpdate(status="Closed", expected_updated_at=incident["updated_at"])
        with pytest.raises(StaleIncident):
            service.update_incident(incident["id"], update)

    def test_dispatch_notifies_on_change(self, service, notifier, incident):
        outcome = service.update_incident(incident["id"], IncidentUpdate(status="Closed"))
        service.dispatch_update_webhooks(outcome)
        notifier.sync_incident.assert_called_once_with(outcome.incident)
        sent = notifier.notify_status_change.call_args.args[0]
        assert sent.model_dump() == {
            "incident_id": "INC-1",
            "phone_number": "628123",
            "old_status": "New",
            "new_status": "Closed",
            "description": "Router down",
        }

    def test_dispatch_skips_notification_when_unchanged(self, service, notifier, incident):
        outcome = service.update_incident(incident["id"], IncidentUpdate(status="New"))
        service.dispatch_update_webhooks(outcome)
        notifier.sync_incident.assert_called_once()
        notifier.notify_status_change.assert_not_called()

    def test_unreachable_webhooks_do_not_raise(self, repo, incident, monkeypatch):
        real = WebhookNotifier("http://sync.invalid", "http://notify.invalid", timeout=0.1)
        client_cls = MagicMock(side_effect=OSError("unreachable"))
        monkeypatch.setattr("incident_dashboard.services.notifier.httpx.Client", client_cls)
        service = IncidentService(repo, real)
        outcome = service.update_incident(incident["id"], IncidentUpdate(status="Resolved"))
        service.dispatch_update_webhooks(outcome)
        assert client_cls.call_count == 2
        assert repo.get_incident(incident["id"])["status"] == "Resolved"


# ═══════════════════════════════════════════════════════════════════════════
# READ / DELETE
# ═══════════════════════════════════════════════════════════════════════════
class TestReadDelete:
    def test_list_newest_first(self, service):
        for key in ("INC-A", "INC-B", "INC-C"):
            _ingest(service, incident_id=key)
        total, rows = service.list_incidents()
        assert total == 3
        assert [r["incident_id"] for r in rows] == ["INC-C", "INC-B", "INC-A"]

    def test_delete(self, service, repo):
        incident = _ingest(service, incident_id="INC-1").incident
        assert service.delete_incident(incident["id"])["incident_id"] == "INC-1"
        assert repo.rows == {}

    def test_delete_missing_or_malformed_is_noop(self, service):
        assert service.delete_incident("8b7f1c1e-0000-4000-8000-000000000000") is None
        assert service.delete_incident("not-a-uuid") is None

    def test_seed_gauges(self, service, repo):
        _ingest(service, incident_id="INC-1")
        service.seed_gauges()
