# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""In-process change feed: repository writes fan out to subscribers."""
import threading
from typing import Callable, List

from incident_dashboard.core.logging import get_logger
from incident_dashboard.schemas import ChangeEvent

logger = get_logger(__name__)

Subscriber = Callable[[ChangeEvent], None]


class ChangeFeed:
    """Publish/subscribe of row changes. Delivery is synchronous, in publish order."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: ChangeEvent):
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("Change-feed subscriber failed on %s", event.event_type)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
