# WS /ws push channel

from fastapi import APIRouter, Depends, WebSocket
import structlog

from leaderboard.core.dependencies import get_notifier
from leaderboard.services.notifier import Notifier

logger = structlog.get_logger()
router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def leaderboard_updates(
        websocket: WebSocket,
        notifier: Notifier = Depends(get_notifier)
):
    """
    Push channel for leaderboard changes.

    Sends `{"type": "new_point", "data": {...}}` for every ingested event.
    Clients should refetch the leaderboard on each message; inbound frames
    are ignored.
    """
    await websocket.accept()
    await notifier.subscribe(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await notifier.unsubscribe(websocket)
        logger.debug("websocket_closed", client=str(websocket.client))
