"""Client side of the notification channel: reconnection and keepalive.

``ReconnectionSupervisor`` keeps one channel open to the hub.  Any closure
the caller did not ask for counts as abnormal: the supervisor waits a fixed
delay and reconnects, up to ``max_attempts`` consecutive failures, then gives
up for good.  While the channel is open a ``KeepaliveTimer`` sends periodic ``ping``
messages so idle-connection reapers leave it alone.

Usage::

    supervisor = ReconnectionSupervisor("wss://api.example.com/",
                                        origin="https://menu.example.com",
                                        on_message=handle)
    await supervisor.start()
    ...
    await supervisor.close()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidStatus

from menudigital.defaults import (
    KEEPALIVE_INTERVAL_SECONDS,
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_DELAY_SECONDS,
)
from menudigital.models import MessageKind
from menudigital.realtime import messages
from menudigital.realtime.messages import MessageError

log = logging.getLogger("menudigital.client")

_HTTP_FORBIDDEN = 403


class OriginRejected(Exception):
    """The server refused the handshake because of the declared origin."""


class ClientConnection(Protocol):
    """What the supervisor needs from an open connection."""

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...


Connector = Callable[[str, "str | None"], Awaitable[ClientConnection]]


async def websocket_connector(url: str, origin: str | None = None) -> ClientConnection:
    """Open a channel with the ``websockets`` library."""
    try:
        return await ws_connect(url, origin=origin)
    except InvalidStatus as e:
        if e.response.status_code == _HTTP_FORBIDDEN:
            raise OriginRejected(f"Handshake refused for origin {origin!r}") from e
        raise


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


# ---------------------------------------------------------------------------
# Keepalive
# ---------------------------------------------------------------------------

class KeepaliveTimer:
    """Sends a keepalive ping every *interval* seconds while running."""

    def __init__(
        self,
        send: Callable[[dict[str, Any]], Awaitable[None]],
        interval: float = KEEPALIVE_INTERVAL_SECONDS,
    ) -> None:
        self._send = send
        self.interval = interval
        self.pings_sent = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._send(messages.ping())
            except Exception as e:
                log.warning("Keepalive ping failed, stopping timer: %s", e)
                return
            self.pings_sent += 1


# ---------------------------------------------------------------------------
# Reconnection
# ---------------------------------------------------------------------------

class SupervisorState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    WAITING = "waiting"
    GAVE_UP = "gave_up"
    CLOSED = "closed"


class ReconnectionSupervisor:
    """Keeps a notification channel open with bounded fixed-delay retries."""

    def __init__(
        self,
        url: str,
        *,
        origin: str | None = None,
        connect: Connector | None = None,
        on_message: Callable[[dict[str, Any]], Any] | None = None,
        on_give_up: Callable[[], Any] | None = None,
        max_attempts: int = MAX_RECONNECT_ATTEMPTS,
        retry_delay: float = RECONNECT_DELAY_SECONDS,
        keepalive_interval: float = KEEPALIVE_INTERVAL_SECONDS,
    ) -> None:
        self.url = url
        self.origin = origin
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.keepalive_interval = keepalive_interval
        self._connect = connect or websocket_connector
        self._on_message = on_message
        self._on_give_up = on_give_up

        self.state = SupervisorState.IDLE
        self.attempts = 0
        self.connections_opened = 0
        self._conn: ClientConnection | None = None
        self._keepalive: KeepaliveTimer | None = None
        self._task: asyncio.Task[None] | None = None
        self._closing = False
        self._opened = asyncio.Event()
        self._finished = asyncio.Event()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def keepalive(self) -> KeepaliveTimer | None:
        return self._keepalive

    async def start(self) -> None:
        """Begin connecting. No-op while an attempt is already in flight."""
        if self.running or self.state in (SupervisorState.GAVE_UP, SupervisorState.CLOSED):
            return
        self._closing = False
        self._finished.clear()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def close(self) -> None:
        """Caller-initiated teardown: stop keepalive, close, never reconnect."""
        self._closing = True
        self._stop_keepalive()
        conn, self._conn = self._conn, None
        if conn is not None:
            try:
                await conn.close()
            except Exception as e:
                log.debug("Error while closing channel: %s", e)
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._opened.clear()
        self.state = SupervisorState.CLOSED
        self._finished.set()

    async def wait_open(self, timeout: float | None = None) -> bool:
        """Wait until the channel is open. Returns False on timeout or give-up."""
        opened = asyncio.ensure_future(self._opened.wait())
        finished = asyncio.ensure_future(self._finished.wait())
        try:
            await asyncio.wait({opened, finished}, timeout=timeout,
                               return_when=asyncio.FIRST_COMPLETED)
        finally:
            opened.cancel()
            finished.cancel()
        return self._opened.is_set()

    async def wait_finished(self) -> None:
        """Wait until the supervisor gave up or was closed."""
        await self._finished.wait()

    async def send(self, message: dict[str, Any]) -> None:
        if self._conn is None or self.state != SupervisorState.OPEN:
            raise ConnectionError("channel is not open")
        await self._conn.send(messages.encode(message))

    async def send_menu_update(self, restaurant_id: int, item: Any = None) -> None:
        """Tell every connected client that *restaurant_id*'s menu changed."""
        await self.send(messages.menu_updated(restaurant_id, item))

    # ------------------------------------------------------------------
    # Connection loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while not self._closing:
            self.state = SupervisorState.CONNECTING
            try:
                conn = await self._connect(self.url, self.origin)
            except OriginRejected as e:
                log.error("Channel handshake rejected, not retrying: %s", e,
                          extra={"origin": self.origin})
                await self._give_up()
                return
            except Exception as e:
                log.warning("Channel connection to %s failed: %s", self.url, e)
            else:
                await self._serve(conn)

            if self._closing:
                return
            self.attempts += 1
            if self.attempts >= self.max_attempts:
                log.error("Giving up on %s after %d consecutive failures",
                          self.url, self.attempts)
                await self._give_up()
                return
            self.state = SupervisorState.WAITING
            log.info("Reconnecting to %s in %.1fs (attempt %d/%d)",
                     self.url, self.retry_delay, self.attempts + 1, self.max_attempts)
            await asyncio.sleep(self.retry_delay)

    async def _serve(self, conn: ClientConnection) -> None:
        """Pump one open connection until it closes."""
        self._conn = conn
        self.state = SupervisorState.OPEN
        self.attempts = 0
        self.connections_opened += 1
        self._opened.set()
        self._keepalive = KeepaliveTimer(self.send, self.keepalive_interval)
        self._keepalive.start()
        log.info("Channel open: %s", self.url)
        try:
            async for raw in conn:
                await self._handle(raw)
            log.warning("Channel to %s closed by server", self.url)
        except ConnectionClosed as e:
            log.warning("Channel to %s lost: %s", self.url, e)
        finally:
            self._stop_keepalive()
            self._opened.clear()
            self._conn = None

    async def _handle(self, raw: str | bytes) -> None:
        try:
            message = messages.parse_message(raw)
        except MessageError as e:
            log.warning("Ignoring malformed frame from server: %s", e)
            return
        if message["kind"] == MessageKind.PONG:
            log.debug("Keepalive acknowledged")
            return
        if self._on_message is None:
            return
        try:
            await _maybe_await(self._on_message(message))
        except Exception:
            log.exception("Message callback failed for kind %s", message["kind"])

    def _stop_keepalive(self) -> None:
        if self._keepalive is not None:
            self._keepalive.stop()

    async def _give_up(self) -> None:
        self.state = SupervisorState.GAVE_UP
        self._finished.set()
        if self._on_give_up is not None:
            await _maybe_await(self._on_give_up())
