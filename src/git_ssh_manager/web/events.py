"""Live-update WebSocket endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["events"])
logger = logging.getLogger(__name__)


@router.websocket("/")
async def repository_events(websocket: WebSocket):
    """Subscribe a browser tab to repository events until it disconnects."""
    broadcaster = websocket.app.state.broadcaster
    try:
        if not await broadcaster.connect(websocket):
            return
        while True:
            # Clients never send anything meaningful; reading keeps the
            # connection alive and surfaces the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
