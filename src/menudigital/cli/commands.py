"""CLI commands: serve, listen, notify."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from menudigital.cli._helpers import _line, _out
from menudigital.models import MessageKind
from menudigital.realtime.client import ReconnectionSupervisor, SupervisorState


def cmd_serve(args: argparse.Namespace) -> int:
    from menudigital import server
    server.serve(host=args.host, port=args.port, log_level=args.log_level)
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    return asyncio.run(_listen(args))


async def _listen(args: argparse.Namespace) -> int:
    def on_message(message: dict[str, Any]) -> None:
        if message.get("kind") == MessageKind.MENU_CHANGED:
            _line(message)

    supervisor = ReconnectionSupervisor(
        args.url,
        origin=args.origin,
        on_message=on_message,
        max_attempts=args.max_attempts,
        retry_delay=args.retry_delay,
    )
    await supervisor.start()
    try:
        await supervisor.wait_finished()
        gave_up = supervisor.state == SupervisorState.GAVE_UP
    finally:
        await supervisor.close()
    if gave_up:
        return _out({"error": f"gave up on {args.url} after {supervisor.attempts} attempts"})
    return 0


def cmd_notify(args: argparse.Namespace) -> int:
    try:
        item = json.loads(args.item)
    except json.JSONDecodeError as e:
        return _out({"error": f"--item is not valid JSON: {e.msg}"})
    return asyncio.run(_notify(args, item))


async def _notify(args: argparse.Namespace, item: Any) -> int:
    supervisor = ReconnectionSupervisor(args.url, origin=args.origin, max_attempts=1)
    await supervisor.start()
    try:
        if not await supervisor.wait_open(timeout=args.timeout):
            return _out({"error": f"could not open channel to {args.url}"})
        await supervisor.send_menu_update(args.restaurant_id, item)
        return _out({"sent": MessageKind.MENU_UPDATED, "restaurantId": args.restaurant_id})
    finally:
        await supervisor.close()
