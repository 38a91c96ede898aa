"""WebSocket transport for the realtime event router."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from dine_match.api.models import ClientMessage, CompleteEvent, JoinEvent, SwipeEvent
from dine_match.domain.errors import InvalidEventError

if TYPE_CHECKING:
    from dine_match.containers import AppContainer
    from dine_match.services.realtime import EventRouter

router = APIRouter()

_logger = logging.getLogger(__name__)


@dataclass
class WebSocketConnection:
    """Router connection backed by a FastAPI WebSocket."""

    websocket: WebSocket
    handle: str

    async def send(self, event: str, data: dict[str, object]) -> None:
        """Send a JSON event envelope."""
        await self.websocket.send_json({"event": event, "data": data})


@router.websocket("/ws")
async def realtime_endpoint(websocket: WebSocket) -> None:
    """Serve one participant connection until it closes."""
    container: AppContainer = websocket.app.state.container
    event_router = container.event_router
    await websocket.accept()
    connection = WebSocketConnection(websocket=websocket, handle=uuid4().hex)
    await connection.send("connected", {"connectionHandle": connection.handle})
    try:
        while True:
            raw = await websocket.receive_text()
            await dispatch(event_router, connection, raw)
    except WebSocketDisconnect:
        _logger.info("Connection %s closed", connection.handle)
    finally:
        await event_router.disconnect(connection)


async def dispatch(
    event_router: EventRouter, connection: WebSocketConnection, raw: str
) -> None:
    """Parse one inbound message and hand it to the router."""
    try:
        message = ClientMessage.model_validate_json(raw)
    except ValidationError:
        await event_router.reject(connection, InvalidEventError("Malformed message"))
        return
    try:
        if message.event == "join":
            join = JoinEvent.model_validate(message.data)
            await event_router.join(connection, join.session_id, join.key)
        elif message.event == "swipe":
            swipe = SwipeEvent.model_validate(message.data)
            await event_router.swipe(
                connection,
                swipe.session_id,
                swipe.candidate_id,
                swipe.direction,
                swipe.candidate,
            )
        elif message.event == "complete":
            complete = CompleteEvent.model_validate(message.data)
            await event_router.complete(connection, complete.session_id)
        else:
            await event_router.reject(
                connection, InvalidEventError(f"Unknown event: {message.event}")
            )
    except ValidationError:
        await event_router.reject(
            connection, InvalidEventError(f"Malformed {message.event} payload")
        )
