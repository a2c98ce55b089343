"""Real-time menu-change notification channel."""

from menudigital.realtime.client import KeepaliveTimer, OriginRejected, ReconnectionSupervisor
from menudigital.realtime.hub import NotificationHub
from menudigital.realtime.origin import OriginGate

__all__ = [
    "KeepaliveTimer",
    "NotificationHub",
    "OriginGate",
    "OriginRejected",
    "ReconnectionSupervisor",
]
