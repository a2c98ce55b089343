"""CLI for menudigital.

Commands:
  menudigital serve
  menudigital listen --url URL [--origin ORIGIN]
  menudigital notify --url URL --restaurant-id ID [--item JSON]
"""

from __future__ import annotations

import sys

from menudigital.cli._helpers import _out  # noqa: F401 re-exported for tests
from menudigital.cli._parser import build_parser
from menudigital.cli.commands import cmd_listen, cmd_notify, cmd_serve
from menudigital.config import Settings
from menudigital.observability import setup_logging

_DISPATCH = {
    "serve": cmd_serve,
    "listen": cmd_listen,
    "notify": cmd_notify,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if not args.command:
        parser.print_help()
        return 1

    if args.command != "serve":
        setup_logging(args.log_level or Settings().log_level)

    handler = _DISPATCH.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)
