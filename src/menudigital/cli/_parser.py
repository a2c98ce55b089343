"""Argparse parser definition for the menudigital CLI."""

from __future__ import annotations

import argparse

from menudigital.defaults import MAX_RECONNECT_ATTEMPTS, RECONNECT_DELAY_SECONDS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="menudigital",
        description="Digital restaurant menus with live change notifications",
    )
    parser.add_argument("--log-level", default=None, help="Override MENUDIGITAL_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command")

    _register_server_commands(sub)
    _register_channel_commands(sub)

    return parser


def _register_server_commands(sub: argparse._SubParsersAction) -> None:
    # -- serve --
    p = sub.add_parser("serve", help="Start HTTP API and notification channel")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=5000)


def _register_channel_commands(sub: argparse._SubParsersAction) -> None:
    # -- listen --
    p = sub.add_parser("listen", help="Print menu-changed notifications as JSON lines")
    p.add_argument("--url", required=True, help="Channel URL, e.g. ws://127.0.0.1:5000/")
    p.add_argument("--origin", default=None, help="Origin header to declare")
    p.add_argument("--max-attempts", type=int, default=MAX_RECONNECT_ATTEMPTS)
    p.add_argument("--retry-delay", type=float, default=RECONNECT_DELAY_SECONDS)

    # -- notify --
    p = sub.add_parser("notify", help="Send one menu-updated message")
    p.add_argument("--url", required=True)
    p.add_argument("--origin", default=None)
    p.add_argument("--restaurant-id", type=int, required=True)
    p.add_argument("--item", default="null", help="JSON payload describing the change")
    p.add_argument("--timeout", type=float, default=10.0)
