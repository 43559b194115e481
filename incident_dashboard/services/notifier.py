# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Outbound webhooks to the workflow engine. Best effort, at most once.

Nothing here raises: every failure is logged and counted, never retried.
"""
from typing import Any, Dict

import httpx

from incident_dashboard.core.logging import get_logger
from incident_dashboard.metrics import WEBHOOK_DELIVERIES
from incident_dashboard.schemas import SheetsSyncPayload, StatusChangeNotification

logger = get_logger(__name__)


class WebhookNotifier:
    def __init__(self, sync_url: str, notify_url: str = "", timeout: float = 10.0):
        self._sync_url = sync_url
        self._notify_url = notify_url
        self._timeout = timeout

    @property
    def notifications_enabled(self) -> bool:
        return bool(self._notify_url)

    def sync_incident(self, row: Dict[str, Any]) -> bool:
        """Push the updated row to the spreadsheet-sync workflow."""
        if not self._sync_url:
            logger.warning("Sheet sync target not configured, skipping %s", row.get("incident_id"))
            WEBHOOK_DELIVERIES.labels(target="sheets_sync", outcome="skipped").inc()
            return False
        payload = SheetsSyncPayload.from_row(row).model_dump()
        return self._post("sheets_sync", self._sync_url, payload)

    def notify_status_change(self, notification: StatusChangeNotification) -> bool:
        if not self._notify_url:
            return False
        delivered = self._post("status_notify", self._notify_url, notification.model_dump())
        if delivered:
            logger.info("Status change notification sent for %s", notification.incident_id)
        return delivered

    def _post(self, target: str, url: str, payload: Dict[str, Any]) -> bool:
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(url, json=payload)
            logger.info("Webhook %s responded %s: %s", target, resp.status_code, resp.text[:200])
            outcome = "delivered" if resp.status_code < 400 else "rejected"
        except Exception as exc:
            logger.warning("Webhook %s unreachable: %s", target, exc)
            outcome = "failed"
        WEBHOOK_DELIVERIES.labels(target=target, outcome=outcome).inc()
        return outcome == "delivered"
