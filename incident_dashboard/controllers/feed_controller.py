# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Real-time change feed over WebSocket."""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from incident_dashboard.core.dependencies import get_ws_container
from incident_dashboard.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/incidents/feed")
async def incident_feed(websocket: WebSocket):
    """
    Streams one message per row change:
    {"type": "change", "data": {"event_type": "INSERT" | "UPDATE" | "DELETE", "new": {...}, "old": {...}}}
    Idle connections receive {"type": "heartbeat"} messages.
    """
    manager = get_ws_container(websocket).connections
    if not await manager.connect(websocket):
        return
    try:
        while True:
            # Inbound messages are ignored; reading detects the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Feed client went away")
    finally:
        await manager.disconnect(websocket)
