"""Origin Gate: allow-list check for incoming channel handshakes."""

from __future__ import annotations

import logging
from typing import Iterable

from menudigital.config import OriginEntry, Settings

log = logging.getLogger("menudigital.origin")


class OriginGate:
    """Accept or reject a handshake based on its declared ``Origin``.

    Plain string entries must match exactly; compiled patterns must match
    the whole origin.  An absent origin (non-browser client) is accepted.
    """

    def __init__(self, allow_list: Iterable[OriginEntry]) -> None:
        self._allow_list = list(allow_list)
        self.rejected_total = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> OriginGate:
        return cls(settings.allowed_origins)

    @property
    def allow_list(self) -> list[OriginEntry]:
        return list(self._allow_list)

    def _matches(self, origin: str) -> bool:
        for entry in self._allow_list:
            if isinstance(entry, str):
                if origin == entry:
                    return True
            elif entry.fullmatch(origin):
                return True
        return False

    def is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return True
        if self._matches(origin):
            return True
        self.rejected_total += 1
        log.warning("Blocked channel origin: %s", origin, extra={"origin": origin})
        return False
