# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dashboard view state: the in-memory incident list the board and table render.

Fed by an initial load and the live change feed. Status changes made by the
operator are applied locally before the server confirms them; each one stays
pending until the feed echoes an UPDATE for that row, and reconcile() reloads
from the server when a pending change has waited too long.
"""
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from incident_dashboard.client.api_client import IncidentApiClient
from incident_dashboard.core.logging import get_logger
from incident_dashboard.schemas import ChangeEvent

logger = get_logger(__name__)


class IncidentViewState:
    def __init__(self, api: IncidentApiClient, clock: Callable[[], float] = time.monotonic):
        self._api = api
        self._clock = clock
        self._lock = threading.RLock()
        self._incidents: List[Dict[str, Any]] = []
        self._pending: Dict[str, float] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.loading = False
        self.error: Optional[str] = None

    @property
    def incidents(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._incidents)

    @property
    def pending_ids(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def get(self, id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return next((i for i in self._incidents if i["id"] == id), None)

    # ── Loading ────────────────────────────────────────────────────────

    def load(self):
        self.loading = True
        try:
            incidents = self._api.fetch_incidents()
        except Exception as exc:
            logger.error("Failed to load incidents: %s", exc)
            with self._lock:
                self._incidents = []
                self.error = str(exc) or "Failed to load incidents"
            return
        finally:
            self.loading = False
        with self._lock:
            self._incidents = list(incidents)
            self._pending.clear()
            self.error = None

    # ── Live feed ──────────────────────────────────────────────────────

    def attach(self, feed):
        """Subscribe to a change feed (anything with subscribe(callback) -> unsubscribe)."""
        self.detach()
        self._unsubscribe = feed.subscribe(self.apply_change)

    def detach(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def apply_change(self, event):
        if isinstance(event, dict):
            event = ChangeEvent(**event)
        with self._lock:
            if event.event_type == "INSERT" and event.new:
                self._incidents = [i for i in self._incidents if i["id"] != event.new["id"]]
                self._incidents.insert(0, event.new)
            elif event.event_type == "UPDATE" and event.new:
                row_id = event.new["id"]
                self._incidents = [event.new if i["id"] == row_id else i for i in self._incidents]
                self._pending.pop(row_id, None)
            elif event.event_type == "DELETE" and event.old:
                row_id = event.old["id"]
                self._incidents = [i for i in self._incidents if i["id"] != row_id]
                self._pending.pop(row_id, None)

    # ── Operator actions ───────────────────────────────────────────────

    def update_status(self, id: str, status: str) -> Dict[str, Any]:
        with self._lock:
            self._incidents = [
                dict(i, status=status) if i["id"] == id else i for i in self._incidents
            ]
            self._pending[id] = self._clock()
        try:
            return self._api.update_status(id, status)
        except Exception:
            logger.warning("Status update failed for %s, reloading", id)
            self.load()
            raise

    def reconcile(self, max_age: float = 10.0) -> bool:
        """Reload if any optimistic change went unconfirmed for max_age seconds."""
        now = self._clock()
        with self._lock:
            stale = [i for i, since in self._pending.items() if now - since >= max_age]
        if not stale:
            return False
        logger.info("Reconciling %d unconfirmed change(s)", len(stale))
        self.load()
        return True
