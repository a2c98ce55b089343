"""WebSocket binding of the Notification Hub (FastAPI/Starlette).

The channel lives at the server root path.  Handshake order:
Origin Gate -> hub accepting? -> accept -> register -> receive loop.
Refusals close the socket before ``accept`` so the upgrading client sees an
HTTP 403 rather than a silent timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketState

from menudigital.defaults import CLOSE_NORMAL, CLOSE_ORIGIN_REJECTED, CLOSE_SERVICE_RESTART
from menudigital.models import ChannelState, new_id
from menudigital.realtime import messages
from menudigital.realtime.hub import NotificationHub
from menudigital.realtime.origin import OriginGate

log = logging.getLogger("menudigital.transport")

router = APIRouter()


class WebSocketChannel:
    """Adapts a Starlette ``WebSocket`` to the hub's ``Channel`` port."""

    def __init__(self, websocket: WebSocket) -> None:
        self.id = new_id()
        self.origin: str | None = websocket.headers.get("origin")
        self._websocket = websocket
        self._state = ChannelState.CONNECTING
        self._write_lock = asyncio.Lock()

    @property
    def state(self) -> ChannelState:
        return self._state

    async def accept(self) -> None:
        await self._websocket.accept()
        self._state = ChannelState.OPEN

    def mark_closed(self) -> None:
        self._state = ChannelState.CLOSED

    async def send(self, message: dict[str, Any]) -> None:
        if self._state != ChannelState.OPEN:
            raise ConnectionError(f"channel {self.id} is {self._state.value}")
        async with self._write_lock:
            await self._websocket.send_text(messages.encode(message))

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        if self._state == ChannelState.CLOSED:
            return
        self._state = ChannelState.CLOSED
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            return
        async with self._write_lock:
            await self._websocket.close(code=code, reason=reason)


@router.websocket("/")
async def menu_channel(websocket: WebSocket) -> None:
    hub: NotificationHub = websocket.app.state.hub
    gate: OriginGate = websocket.app.state.origin_gate

    origin = websocket.headers.get("origin")
    if not gate.is_allowed(origin):
        await websocket.close(code=CLOSE_ORIGIN_REJECTED, reason="Origin not allowed")
        return
    if not hub.accepting:
        await websocket.close(code=CLOSE_SERVICE_RESTART, reason="Server shutting down")
        return

    channel = WebSocketChannel(websocket)
    await channel.accept()
    if not await hub.on_connect(channel):
        await channel.close(CLOSE_SERVICE_RESTART, "Server shutting down")
        return

    reason = "transport error"
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                reason = f"closed by client (code={frame.get('code', CLOSE_NORMAL)})"
                break
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes") or b""
            await hub.on_message(channel, raw)
    finally:
        channel.mark_closed()
        await hub.on_disconnect(channel, reason)
