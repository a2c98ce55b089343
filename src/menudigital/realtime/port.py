"""Channel port: protocol definition for transport bindings of the hub."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from menudigital.models import ChannelState


@runtime_checkable
class Channel(Protocol):
    """One long-lived bidirectional connection to a client."""

    id: str
    origin: str | None

    @property
    def state(self) -> ChannelState: ...

    async def send(self, message: dict[str, Any]) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...
