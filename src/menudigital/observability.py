"""Observability: JSON logs, per-route request metrics, hub counters.

Metrics are rendered in the Prometheus text exposition format by hand; the
only sources are the in-process ``RequestMetrics`` registry, the hub's
``HubStats`` and the Origin Gate's rejection count.
"""

from __future__ import annotations

import json
import logging
import time
from collections import Counter
from typing import TYPE_CHECKING, Any, Iterable

from fastapi import FastAPI, Request, Response

if TYPE_CHECKING:
    from menudigital.realtime.hub import HubStats
    from menudigital.realtime.origin import OriginGate

_SERVER_ERROR = 500
_MS_PER_SECOND = 1000

# Record attributes copied into the JSON line when a caller passes them as extras
_CONTEXT_FIELDS = (
    "channel_id", "origin", "kind", "reason", "restaurant_id",
    "method", "path", "status_code", "duration_ms",
)

_access_log = logging.getLogger("menudigital.access")


# ---------------------------------------------------------------------------
# Structured JSON logging
# ---------------------------------------------------------------------------

class JsonFormatter(logging.Formatter):
    """One JSON object per line; channel and request context ride along."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field)) for field in _CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Send every record through a single JSON handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # uvicorn's access log duplicates menudigital.access
    for noisy in ("uvicorn.access", "websockets"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Request metrics
# ---------------------------------------------------------------------------

class _RouteStats:
    __slots__ = ("statuses", "seconds", "errors")

    def __init__(self) -> None:
        self.statuses: Counter[int] = Counter()
        self.seconds = 0.0
        self.errors = 0

    @property
    def count(self) -> int:
        return sum(self.statuses.values())


class RequestMetrics:
    """Per (method, path) request counts, latency totals and 5xx counts."""

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], _RouteStats] = {}

    def observe(self, method: str, path: str, status: int, seconds: float) -> None:
        route = self._routes.get((method, path))
        if route is None:
            route = self._routes[(method, path)] = _RouteStats()
        route.statuses[status] += 1
        route.seconds += seconds
        if status >= _SERVER_ERROR:
            route.errors += 1

    def clear(self) -> None:
        self._routes.clear()

    def routes(self) -> list[tuple[dict[str, str], _RouteStats]]:
        return [({"method": m, "path": p}, stats) for (m, p), stats in sorted(self._routes.items())]


_requests = RequestMetrics()


def record_request(method: str, path: str, status: int, duration: float) -> None:
    _requests.observe(method, path, status, duration)


def reset_metrics() -> None:
    """Forget all recorded requests (tests)."""
    _requests.clear()


# ---------------------------------------------------------------------------
# Text exposition
# ---------------------------------------------------------------------------

Sample = tuple[str, dict[str, str], Any]


def _labels(labels: dict[str, str]) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in labels.items()) + "}"


def _family(name: str, kind: str, help_text: str, samples: Iterable[Sample]) -> list[str]:
    lines = [f"# HELP {name} {help_text}", f"# TYPE {name} {kind}"]
    lines.extend(f"{name}{suffix}{_labels(labels)} {value}" for suffix, labels, value in samples)
    return lines


def generate_metrics(hub_stats: HubStats | None = None, gate: OriginGate | None = None) -> str:
    """Render request, hub and origin metrics as Prometheus text."""
    routes = _requests.routes()
    lines = _family(
        "menudigital_http_requests_total", "counter",
        "HTTP requests by method, path and status.",
        (("", {**labels, "status": str(status)}, n)
         for labels, stats in routes for status, n in sorted(stats.statuses.items())),
    )
    lines += _family(
        "menudigital_http_request_duration_seconds", "summary",
        "Time spent serving HTTP requests.",
        (sample for labels, stats in routes for sample in (
            ("_sum", labels, f"{stats.seconds:.6f}"),
            ("_count", labels, stats.count),
        )),
    )
    lines += _family(
        "menudigital_http_errors_total", "counter",
        "HTTP responses with a 5xx status.",
        (("", labels, stats.errors) for labels, stats in routes if stats.errors),
    )

    if hub_stats is not None:
        for stat, value in sorted(hub_stats.to_dict().items()):
            lines += _family(
                f"menudigital_channel_{stat}", "counter",
                f"Notification hub {stat.replace('_', ' ')}.",
                [("", {}, value)],
            )
    if gate is not None:
        lines += _family(
            "menudigital_channel_origin_rejected_total", "counter",
            "Handshakes refused by the Origin Gate.",
            [("", {}, gate.rejected_total)],
        )
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# FastAPI middleware
# ---------------------------------------------------------------------------

def add_observability_middleware(app: FastAPI) -> None:
    """Time every HTTP request, record it and write one access-log line."""

    @app.middleware("http")
    async def observe_request(request: Request, call_next) -> Response:
        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = time.perf_counter() - started

        method, path, status = request.method, request.url.path, response.status_code
        record_request(method, path, status, elapsed)
        ms = round(elapsed * _MS_PER_SECOND, 1)
        _access_log.info("%s %s %d %.0fms", method, path, status, ms,
                         extra={"method": method, "path": path,
                                "status_code": status, "duration_ms": ms})
        return response
