# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""WebSocket fan-out of change-feed events to dashboard browsers."""
import asyncio
import json
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from fastapi import WebSocket

from incident_dashboard.core.logging import get_logger
from incident_dashboard.metrics import FEED_CONNECTIONS
from incident_dashboard.schemas import ChangeEvent

logger = get_logger(__name__)


class ConnectionManager:
    """Active WebSocket connections with bounded queues and heartbeat."""

    def __init__(self, max_connections: int = 100, queue_size: int = 50,
                 heartbeat_interval: int = 30):
        self._connections: Dict[WebSocket, asyncio.Queue] = {}
        self._writer_tasks: Dict[WebSocket, asyncio.Task] = {}
        self._eviction_tasks: Set[asyncio.Task] = set()
        self._max_connections = max_connections
        self._queue_size = queue_size
        self._heartbeat_interval = heartbeat_interval
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket) -> bool:
        """Accept connection if under limit. Returns False if rejected."""
        if len(self._connections) >= self._max_connections:
            await websocket.close(code=1013)
            logger.warning("Feed connection rejected: %d open", len(self._connections))
            return False
        await websocket.accept()
        # Sent before the writer exists so it is always the first frame.
        await websocket.send_json({
            "type": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        self._loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._connections[websocket] = queue
        self._writer_tasks[websocket] = asyncio.create_task(self._writer(websocket, queue))
        FEED_CONNECTIONS.set(len(self._connections))
        logger.info("Feed client connected total=%d", len(self._connections))
        return True

    async def disconnect(self, websocket: WebSocket):
        self._connections.pop(websocket, None)
        task = self._writer_tasks.pop(websocket, None)
        if task and not task.done():
            task.cancel()
        try:
            await websocket.close()
        except Exception as exc:
            logger.debug("Feed close failed: %s", exc)
        FEED_CONNECTIONS.set(len(self._connections))
        logger.info("Feed client disconnected total=%d", len(self._connections))

    def publish(self, event: ChangeEvent):
        """Change-feed subscriber. Safe to call from request worker threads."""
        if not self._connections or self._loop is None or self._loop.is_closed():
            return
        message = json.dumps({"type": "change", "data": event.model_dump()})
        self._loop.call_soon_threadsafe(self._enqueue, message)

    def _enqueue(self, message: str):
        for ws, queue in list(self._connections.items()):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning("Feed client too slow, disconnecting")
                self._evict(ws)

    def _evict(self, websocket: WebSocket):
        # Dropped from the fan-out now so later events do not schedule it again.
        self._connections.pop(websocket, None)
        task = asyncio.create_task(self.disconnect(websocket))
        self._eviction_tasks.add(task)
        task.add_done_callback(self._eviction_tasks.discard)

    async def close_all(self):
        for ws in list(self._connections.keys()):
            await self.disconnect(ws)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def _writer(self, websocket: WebSocket, queue: asyncio.Queue):
        """Per-connection writer that drains the queue, pinging when idle."""
        last_activity = time.monotonic()
        try:
            while True:
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=self._heartbeat_interval)
                    await websocket.send_text(message)
                except asyncio.TimeoutError:
                    await websocket.send_text(json.dumps({
                        "type": "heartbeat",
                        "idle_seconds": round(time.monotonic() - last_activity, 1),
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    }))
                    continue
                last_activity = time.monotonic()
        except asyncio.CancelledError:
            return
        except Exception as exc:
            logger.debug("Feed writer stopped: %s", exc)
