"""Fan-out of repository status events to live-update WebSocket clients."""

from __future__ import annotations

import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from .api_models import RepositoryEvent, RepositoryStatusReport
from .errors import ValidationFailure
from .key_material import cleanup_key_dir
from .time_utils import isoformat_utc

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({"cloned_successfully", "local_project"})
CONNECTION_MESSAGE = "Connected to repository events WebSocket"


class ClientRegistry:
    """Set of currently connected live-update sockets.

    Only touched from the event loop, so no locking is needed; iteration goes
    through :meth:`snapshot` so membership may change while a broadcast runs.
    """

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    def add(self, websocket: WebSocket) -> None:
        self._clients.add(websocket)

    def discard(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)

    def snapshot(self) -> list[WebSocket]:
        return list(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, websocket: object) -> bool:
        return websocket in self._clients


def _is_open(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


def build_event(report: RepositoryStatusReport) -> RepositoryEvent:
    """Turn an orchestrator status report into a :class:`RepositoryEvent`."""
    if not report.guid:
        raise ValidationFailure("guid is required")
    event_type = "repository_success" if report.repo_status in SUCCESS_STATUSES else "repository_failure"
    return RepositoryEvent(
        guid=report.guid,
        pipeline_name=report.pipeline_name,
        repo_url=report.repo_url,
        branch=report.branch,
        project_path=report.project_path,
        repo_status=report.repo_status,
        validation_info=report.validation_info,
        timestamp=report.timestamp or isoformat_utc(),
        event_type=event_type,
    )


class EventBroadcaster:
    """Best-effort broadcaster; delivery failures are never reported to the sender."""

    def __init__(self, clients: ClientRegistry) -> None:
        self.clients = clients

    async def connect(self, websocket: WebSocket) -> bool:
        """Accept a socket, register it and send the acknowledgement.

        :returns: ``False`` when the client went away before the
            acknowledgement could be sent; the socket is not kept.
        """
        await websocket.accept()
        self.clients.add(websocket)
        try:
            await websocket.send_text(
                json.dumps(
                    {
                        "type": "connection",
                        "message": CONNECTION_MESSAGE,
                        "timestamp": isoformat_utc(),
                    }
                )
            )
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.warning("WebSocket client lost during handshake: %s", exc)
            self.clients.discard(websocket)
            return False
        logger.info("WebSocket client connected (%s total)", len(self.clients))
        return True

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a socket; calling it twice is harmless."""
        if websocket in self.clients:
            self.clients.discard(websocket)
            logger.info("WebSocket client disconnected (%s total)", len(self.clients))

    async def broadcast(self, event: RepositoryEvent) -> int:
        """Send ``event`` to every open client.

        :returns: Number of clients the message was handed to.
        """
        message = json.dumps(
            {
                "type": "repository_event",
                "data": event.model_dump(mode="json"),
                "timestamp": isoformat_utc(),
            }
        )
        delivered = 0
        for websocket in self.clients.snapshot():
            if not _is_open(websocket):
                continue
            try:
                await websocket.send_text(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                logger.warning("Dropping WebSocket client after failed send: %s", exc)
                self.disconnect(websocket)
                continue
            delivered += 1
        logger.info("Broadcasted repository event %s to %s clients", event.guid, delivered)
        return delivered

    async def receive_repository_status(self, report: RepositoryStatusReport) -> tuple[RepositoryEvent, int]:
        """Broadcast the outcome reported by the orchestrator for a run."""
        event = build_event(report)
        if cleanup_key_dir(event.guid):
            logger.debug("Released key material of run %s", event.guid)
        delivered = await self.broadcast(event)
        return event, delivered

    async def close(self) -> None:
        """Close every registered socket."""
        for websocket in self.clients.snapshot():
            if _is_open(websocket):
                try:
                    await websocket.close(code=1001)
                except (RuntimeError, OSError):
                    logger.debug("WebSocket already closed during shutdown")
            self.clients.discard(websocket)
