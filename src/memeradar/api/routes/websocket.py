"""WebSocket route for real-time token updates."""

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from memeradar.api.dependencies import RegistryDep

log = structlog.get_logger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, registry: RegistryDep) -> None:
    """
    WebSocket endpoint for changed-token pushes.

    Messages from client:
    - {"type": "SUBSCRIBE"} / {"type": "UNSUBSCRIBE"}
    - {"type": "PING"} / {"type": "PONG"}

    Messages to client (all share one envelope):
    - {"type": "UPDATE", "data": {"records": [...], "sourceOfUpdate": "scheduler", ...}, ...}
    - {"type": "UPDATE", "data": {"event": "connected" | "ping" | ..., "message": ...}, ...}
    """
    await registry.connect(websocket)

    try:
        while True:
            message = await websocket.receive_text()
            await registry.handle_client_message(websocket, message)

    except WebSocketDisconnect:
        await registry.disconnect(websocket)
    except Exception as e:
        log.error("websocket_error", error=str(e))
        await registry.disconnect(websocket)
