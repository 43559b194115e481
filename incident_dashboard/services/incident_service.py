# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Business logic: status updates, webhook upserts, listing and deletion."""
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from incident_dashboard.core.errors import DuplicateIncident, IncidentNotFound, InvalidInput
from incident_dashboard.core.logging import get_logger
from incident_dashboard.metrics import INCIDENTS_INGESTED, INCIDENTS_TOTAL, STATUS_CHANGES
from incident_dashboard.repositories.incident_repository import IncidentRepository
from incident_dashboard.schemas import (
    IncidentUpdate, StatusChangeNotification, VALID_STATUSES, WebhookIncidentPayload,
)
from incident_dashboard.services.normalization import normalize_status, normalize_timestamp
from incident_dashboard.services.notifier import WebhookNotifier

logger = get_logger(__name__)

# (canonical column, accepted payload keys in priority order, default when absent)
_TEXT_FIELDS = (
    ("project_name", ("project_name",), ""),
    ("description", ("keterangan", "description"), ""),
    ("incident_type", ("tipe", "incident_type"), "Unknown"),
    ("impact", ("impact",), "Unknown"),
    ("pic", ("pic",), "Unassigned"),
    ("phone_number", ("nomor_wa", "phone_number"), ""),
)
_TIME_FIELDS = ("waktu_kejadian", "waktu_chat")


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass
class UpdateOutcome:
    incident: Dict[str, Any]
    previous: Dict[str, Any]
    message: str

    @property
    def status_changed(self) -> bool:
        return self.previous["status"] != self.incident["status"]


@dataclass
class IngestOutcome:
    incident: Dict[str, Any]
    created: bool
    message: str


class IncidentService:
    def __init__(self, repo: IncidentRepository, notifier: WebhookNotifier):
        self._repo = repo
        self._notifier = notifier

    def seed_gauges(self):
        for status in VALID_STATUSES:
            INCIDENTS_TOTAL.labels(status=status).set(self._repo.count_by_status(status))
        logger.info("Prometheus gauges loaded from DB")

    # ── Read / delete ──────────────────────────────────────────────────

    def list_incidents(self, status: Optional[str] = None, search: Optional[str] = None,
                       limit: int = 100, offset: int = 0) -> Tuple[int, List[Dict[str, Any]]]:
        return self._repo.list_incidents(status, search, limit, offset)

    def get_incident(self, id: str) -> Dict[str, Any]:
        incident = self._repo.get_incident(id) if _is_uuid(id) else None
        if not incident:
            raise IncidentNotFound()
        return incident

    def delete_incident(self, id: str) -> Optional[Dict[str, Any]]:
        if not _is_uuid(id):
            return None
        deleted = self._repo.delete_incident(id)
        if deleted:
            INCIDENTS_TOTAL.labels(status=deleted["status"]).dec()
            logger.info("Incident deleted id=%s incident_id=%s", id, deleted["incident_id"])
        return deleted

    # ── Status / field update ──────────────────────────────────────────

    def update_incident(self, id: str, update: IncidentUpdate) -> UpdateOutcome:
        current = self.get_incident(id)
        changes = update.changes()

        new_status = changes.get("status")
        if new_status is not None and new_status not in VALID_STATUSES:
            raise InvalidInput("Invalid status value")

        logger.info("Updating incident id=%s to status=%s", id, new_status)
        incident = self._repo.update_incident(id, changes, update.expected_updated_at)

        old_status = current["status"]
        if incident["status"] != old_status:
            STATUS_CHANGES.labels(from_status=old_status, to_status=incident["status"]).inc()
            INCIDENTS_TOTAL.labels(status=old_status).dec()
            INCIDENTS_TOTAL.labels(status=incident["status"]).inc()

        return UpdateOutcome(
            incident=incident,
            previous=current,
            message=f"Incident {current['incident_id']} updated successfully",
        )

    def dispatch_update_webhooks(self, outcome: UpdateOutcome):
        """Run after the response is sent; failures are logged by the notifier."""
        self._notifier.sync_incident(outcome.incident)
        if outcome.status_changed and self._notifier.notifications_enabled:
            previous = outcome.previous
            self._notifier.notify_status_change(StatusChangeNotification(
                incident_id=previous["incident_id"],
                phone_number=previous.get("phone_number") or "",
                old_status=previous["status"],
                new_status=outcome.incident["status"],
                description=previous.get("description") or "",
            ))

    # ── Webhook ingestion ──────────────────────────────────────────────

    def ingest(self, payload: WebhookIncidentPayload) -> IngestOutcome:
        """Upsert by business key. Every delivery carries the full field set; absent fields default."""
        key = _text(payload.incident_id)
        if not key:
            raise InvalidInput("incident_id is required")

        fields = self._normalised_fields(payload.model_dump(exclude_unset=True))
        status = fields["status"]
        if status not in VALID_STATUSES:
            raise InvalidInput(f"Invalid status value: {status}")

        existing = self._repo.get_by_incident_id(key)
        if existing:
            incident = self._repo.update_by_incident_id(key, fields)
            if status != existing["status"]:
                STATUS_CHANGES.labels(from_status=existing["status"], to_status=status).inc()
                INCIDENTS_TOTAL.labels(status=existing["status"]).dec()
                INCIDENTS_TOTAL.labels(status=status).inc()
            INCIDENTS_INGESTED.labels(action="updated").inc()
            logger.info("Webhook updated incident %s", key)
            return IngestOutcome(incident, False, f"Incident {key} updated successfully")

        fields["incident_id"] = key
        try:
            incident = self._repo.insert_incident(fields)
        except DuplicateIncident:
            INCIDENTS_INGESTED.labels(action="conflict").inc()
            logger.warning("Webhook insert lost a race on incident %s", key)
            raise
        INCIDENTS_TOTAL.labels(status=incident["status"]).inc()
        INCIDENTS_INGESTED.labels(action="created").inc()
        logger.info("Webhook created incident %s", key)
        return IngestOutcome(incident, True, f"Incident {key} created successfully")

    @staticmethod
    def _normalised_fields(sent: Dict[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for column, keys, default in _TEXT_FIELDS:
            value = next((_text(sent[k]) for k in keys if _text(sent.get(k))), None)
            fields[column] = value if value is not None else default
        for column in _TIME_FIELDS:
            fields[column] = normalize_timestamp(sent.get(column))
        fields["status"] = normalize_status(sent.get("status"))
        return fields
