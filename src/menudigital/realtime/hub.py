"""Notification Hub: registry of open channels and message router.

The hub is transport-independent; it talks to channels only through the
``Channel`` port (``send``/``close``/``state``).  One hub is constructed per
process by the application factory and passed to whatever needs to
broadcast.

Routing:
    ping          -> pong on the same channel
    menu-updated  -> menu-changed to every open channel, sender included
    anything else -> logged and dropped

Failures are isolated per channel: a malformed message, a failing write or a
handler error never reaches other channels or the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from menudigital.defaults import CLOSE_GOING_AWAY, SEND_TIMEOUT_SECONDS
from menudigital.models import ChannelState, MessageKind
from menudigital.realtime import messages
from menudigital.realtime.messages import MessageError
from menudigital.realtime.port import Channel

log = logging.getLogger("menudigital.hub")


class HubStats:
    """Counters exported through the metrics endpoint."""

    def __init__(self) -> None:
        self.connections_total = 0
        self.disconnections_total = 0
        self.messages_total = 0
        self.dropped_total = 0
        self.broadcasts_total = 0
        self.deliveries_total = 0
        self.send_failures_total = 0

    def to_dict(self) -> dict[str, int]:
        return dict(vars(self))


class NotificationHub:
    """Relays menu-change notifications between connected channels."""

    def __init__(self, send_timeout: float = SEND_TIMEOUT_SECONDS) -> None:
        self.send_timeout = send_timeout
        # dicts keep insertion order, which is the registration order
        self._channels: dict[str, Channel] = {}
        self._accepting = True
        self.stats = HubStats()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    @property
    def accepting(self) -> bool:
        return self._accepting

    def open_channels(self) -> list[Channel]:
        """Snapshot of channels currently in the open state."""
        return [c for c in self._channels.values() if c.state == ChannelState.OPEN]

    def __len__(self) -> int:
        return len(self._channels)

    async def on_connect(self, channel: Channel) -> bool:
        if not self._accepting:
            log.info("Refusing channel %s: hub is shut down", channel.id,
                     extra={"channel_id": channel.id})
            return False
        self._channels[channel.id] = channel
        self.stats.connections_total += 1
        log.info("Channel connected: %s (origin=%s)", channel.id, channel.origin or "-",
                 extra={"channel_id": channel.id, "origin": channel.origin})
        return True

    async def on_disconnect(self, channel: Channel, reason: str = "") -> None:
        if self._channels.pop(channel.id, None) is None:
            return
        self.stats.disconnections_total += 1
        log.info("Channel disconnected: %s (%s)", channel.id, reason or "no reason",
                 extra={"channel_id": channel.id, "reason": reason})

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def on_message(self, channel: Channel, raw: str | bytes) -> None:
        """Handle one inbound frame. Never raises."""
        if channel.state != ChannelState.OPEN:
            log.debug("Ignoring frame on %s channel %s", channel.state.value, channel.id)
            return
        self.stats.messages_total += 1
        try:
            await self._dispatch(channel, raw)
        except Exception:
            self.stats.dropped_total += 1
            log.exception("Handler failed for channel %s", channel.id,
                          extra={"channel_id": channel.id})

    async def _dispatch(self, channel: Channel, raw: str | bytes) -> None:
        try:
            message = messages.parse_message(raw)
        except MessageError as e:
            self._drop(channel, None, f"malformed: {e}")
            return

        kind = message["kind"]
        if kind == MessageKind.PING:
            await self.send(channel, messages.pong())
        elif kind == MessageKind.MENU_UPDATED:
            try:
                update = messages.parse_menu_update(message)
            except MessageError as e:
                self._drop(channel, kind, f"invalid: {e}")
                return
            log.info("Menu update from %s for restaurant %s", channel.id, update.restaurant_id,
                     extra={"channel_id": channel.id, "kind": kind,
                            "restaurant_id": update.restaurant_id})
            await self.broadcast(messages.menu_changed(update.restaurant_id, update.item))
        else:
            self._drop(channel, kind, "unrecognized kind")

    def _drop(self, channel: Channel, kind: str | None, reason: str) -> None:
        self.stats.dropped_total += 1
        log.warning("Dropped message on channel %s: %s", channel.id, reason,
                    extra={"channel_id": channel.id, "kind": kind, "reason": reason})

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def send(self, channel: Channel, message: dict[str, Any]) -> bool:
        """Write one message to one channel. Returns False on failure or timeout."""
        if channel.state != ChannelState.OPEN:
            return False
        try:
            await asyncio.wait_for(channel.send(message), self.send_timeout)
        except asyncio.TimeoutError:
            self.stats.send_failures_total += 1
            log.warning("Send to channel %s timed out after %.1fs", channel.id, self.send_timeout,
                        extra={"channel_id": channel.id, "kind": message.get("kind")})
            return False
        except Exception as e:
            self.stats.send_failures_total += 1
            log.warning("Send to channel %s failed: %s", channel.id, e,
                        extra={"channel_id": channel.id, "kind": message.get("kind")})
            return False
        return True

    async def broadcast(self, message: dict[str, Any]) -> int:
        """Deliver *message* to every channel open right now.

        Returns the number of successful deliveries.  Channels that close
        while the broadcast is in flight simply miss it.
        """
        targets = self.open_channels()
        self.stats.broadcasts_total += 1
        if not targets:
            return 0
        results = await asyncio.gather(*(self.send(c, message) for c in targets))
        delivered = sum(1 for ok in results if ok)
        self.stats.deliveries_total += delivered
        log.debug("Broadcast %s delivered to %d/%d channels",
                  message.get("kind"), delivered, len(targets))
        return delivered

    async def for_each_open_channel(
        self, fn: Callable[[Channel], Awaitable[None]],
    ) -> None:
        """Apply *fn* to a snapshot of open channels, isolating failures."""
        for channel in self.open_channels():
            try:
                await fn(channel)
            except Exception:
                log.exception("Callback failed for channel %s", channel.id,
                              extra={"channel_id": channel.id})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Stop accepting channels and close every open one. Idempotent."""
        self._accepting = False
        channels = list(self._channels.values())
        self._channels.clear()
        self.stats.disconnections_total += len(channels)
        for channel in channels:
            try:
                await channel.close(CLOSE_GOING_AWAY, "server shutdown")
            except Exception as e:
                log.warning("Closing channel %s failed: %s", channel.id, e,
                            extra={"channel_id": channel.id})
        if channels:
            log.info("Hub shut down, closed %d channel(s)", len(channels))
