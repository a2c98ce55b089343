"""Shared CLI helpers."""

from __future__ import annotations

import json
from typing import Any


def _out(data: Any) -> int:
    print(json.dumps(data, indent=2, default=str))
    if isinstance(data, dict) and "error" in data:
        return 1
    return 0


def _line(data: Any) -> None:
    """Print one compact JSON line and flush (for streaming output)."""
    print(json.dumps(data, default=str), flush=True)
