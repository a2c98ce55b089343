"""Runtime configuration from environment.

Configuration (env vars):
    MENUDIGITAL_ENV               ``development`` (default) or ``production``;
                                    falls back to ``NODE_ENV``
    MENUDIGITAL_ALLOWED_ORIGINS   comma list overriding the per-environment
                                    origin allow-list; ``re:`` marks a pattern
    MENUDIGITAL_JWT_SECRET        token signing secret
    MENUDIGITAL_JWT_TTL_SECONDS   token lifetime (default 3600)
    MENUDIGITAL_DB_PATH           SQLite database path
    MENUDIGITAL_UPLOAD_DIR        directory for uploaded media
    MENUDIGITAL_SOCKET_URL        public URL of the notification channel
    MENUDIGITAL_LOG_LEVEL         root log level (default INFO)
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Union

from menudigital.defaults import (
    DEFAULT_ALLOWED_ORIGINS,
    ENV_DEVELOPMENT,
    ENV_PRODUCTION,
    INSECURE_JWT_SECRET,
    JWT_TTL_SECONDS,
)

log = logging.getLogger("menudigital.config")

_PATTERN_PREFIX = "re:"

OriginEntry = Union[str, re.Pattern[str]]


def parse_origin_entries(raw: list[str]) -> list[OriginEntry]:
    """Turn configured strings into exact origins and compiled patterns."""
    entries: list[OriginEntry] = []
    for item in raw:
        item = item.strip()
        if not item:
            continue
        if item.startswith(_PATTERN_PREFIX):
            entries.append(re.compile(item[len(_PATTERN_PREFIX):]))
        else:
            entries.append(item.rstrip("/"))
    return entries


class Settings:
    """Process configuration, read once from the environment."""

    def __init__(self) -> None:
        env = os.environ.get("MENUDIGITAL_ENV") or os.environ.get("NODE_ENV") or ENV_DEVELOPMENT
        self.environment = env.lower()
        if self.environment not in (ENV_DEVELOPMENT, ENV_PRODUCTION):
            log.warning("Unknown environment %r, using development origins", self.environment)

        override = os.environ.get("MENUDIGITAL_ALLOWED_ORIGINS", "")
        if override:
            raw_origins = override.split(",")
        else:
            raw_origins = DEFAULT_ALLOWED_ORIGINS.get(
                self.environment, DEFAULT_ALLOWED_ORIGINS[ENV_DEVELOPMENT]
            )
        self.allowed_origins: list[OriginEntry] = parse_origin_entries(raw_origins)

        self.jwt_secret = os.environ.get("MENUDIGITAL_JWT_SECRET", INSECURE_JWT_SECRET)
        self.jwt_ttl_seconds = int(os.environ.get("MENUDIGITAL_JWT_TTL_SECONDS", str(JWT_TTL_SECONDS)))
        self.db_path = os.environ.get("MENUDIGITAL_DB_PATH", str(Path(".menudigital") / "menu.db"))
        self.upload_dir = os.environ.get("MENUDIGITAL_UPLOAD_DIR", str(Path(".menudigital") / "uploads"))
        self.socket_url = os.environ.get("MENUDIGITAL_SOCKET_URL", "ws://127.0.0.1:5000/")
        self.log_level = os.environ.get("MENUDIGITAL_LOG_LEVEL", "INFO")

    @property
    def is_production(self) -> bool:
        return self.environment == ENV_PRODUCTION

    @property
    def exact_origins(self) -> list[str]:
        return [o for o in self.allowed_origins if isinstance(o, str)]

    @property
    def origin_regex(self) -> str | None:
        """All pattern entries joined into one alternation (for CORS)."""
        patterns = [o.pattern for o in self.allowed_origins if not isinstance(o, str)]
        if not patterns:
            return None
        return "|".join(f"(?:{p})" for p in patterns)

    def describe_origins(self) -> list[str]:
        return [o if isinstance(o, str) else f"{_PATTERN_PREFIX}{o.pattern}" for o in self.allowed_origins]
