"""Process entry point: build the application and run it under uvicorn."""

from __future__ import annotations

import json

import uvicorn

from menudigital.api import create_app
from menudigital.config import Settings
from menudigital.models import now_iso
from menudigital.observability import setup_logging


def serve(
    host: str = "0.0.0.0",
    port: int = 5000,
    settings: Settings | None = None,
    log_level: str | None = None,
) -> None:
    """Start the HTTP API and notification channel (blocking)."""
    settings = settings or Settings()
    setup_logging(log_level or settings.log_level)
    app = create_app(settings)
    print(json.dumps({"event": "server_started", "host": host, "port": port,
                      "environment": settings.environment, "timestamp": now_iso()}))
    uvicorn.run(app, host=host, port=port, log_config=None, ws="websockets")
