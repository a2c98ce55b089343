"""Tests for the menudigital CLI (parser and offline command paths)."""

import json
from unittest.mock import patch

import pytest

from menudigital.cli import _out, main
from menudigital.cli._parser import build_parser
from menudigital.defaults import MAX_RECONNECT_ATTEMPTS, RECONNECT_DELAY_SECONDS


@pytest.fixture(autouse=True)
def _keep_root_logging():
    """main() installs a JSON handler on the root logger; keep tests isolated."""
    with patch("menudigital.cli.setup_logging"):
        yield


class TestParser:
    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        assert args.host == "0.0.0.0"
        assert args.port == 5000

    def test_listen_defaults(self):
        args = build_parser().parse_args(["listen", "--url", "ws://127.0.0.1:5000/"])
        assert args.max_attempts == MAX_RECONNECT_ATTEMPTS
        assert args.retry_delay == RECONNECT_DELAY_SECONDS
        assert args.origin is None

    def test_notify(self):
        args = build_parser().parse_args([
            "--log-level", "DEBUG", "notify", "--url", "ws://x/",
            "--restaurant-id", "7", "--item", '{"id": 1}',
        ])
        assert args.restaurant_id == 7
        assert args.item == '{"id": 1}'
        assert args.log_level == "DEBUG"


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_serve_dispatches_to_server(self):
        with patch("menudigital.server.serve") as serve:
            assert main(["serve", "--port", "8080"]) == 0
        serve.assert_called_once_with(host="0.0.0.0", port=8080, log_level=None)

    def test_notify_rejects_invalid_item(self, capsys):
        rc = main(["notify", "--url", "ws://127.0.0.1:1/", "--restaurant-id", "1", "--item", "{oops"])
        assert rc == 1
        assert "not valid JSON" in json.loads(capsys.readouterr().out)["error"]

    def test_notify_reports_unreachable_server(self, capsys):
        rc = main(["notify", "--url", "ws://127.0.0.1:1/", "--restaurant-id", "1", "--timeout", "2"])
        assert rc == 1
        assert "could not open channel" in json.loads(capsys.readouterr().out)["error"]

    def test_listen_gives_up(self, capsys):
        rc = main(["listen", "--url", "ws://127.0.0.1:1/", "--max-attempts", "2", "--retry-delay", "0"])
        assert rc == 1
        assert "gave up" in json.loads(capsys.readouterr().out)["error"]


class TestOut:
    def test_error_exit_code(self, capsys):
        assert _out({"error": "x"}) == 1
        assert _out({"ok": True}) == 0
