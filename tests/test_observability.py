"""Tests for JSON logging and metrics rendering."""

import json
import logging
import sys

from menudigital.observability import JsonFormatter, generate_metrics, record_request, reset_metrics
from menudigital.realtime.hub import HubStats
from menudigital.realtime.origin import OriginGate


def _record(msg="hello", **extra):
    record = logging.LogRecord("menudigital.hub", logging.INFO, __file__, 1, msg, (), None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


class TestJsonFormatter:
    def test_basic_fields(self):
        data = json.loads(JsonFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "menudigital.hub"
        assert data["message"] == "hello"

    def test_channel_extras(self):
        data = json.loads(JsonFormatter().format(
            _record(channel_id="abc", origin="http://evil.test", kind="menu-updated")
        ))
        assert data["channel_id"] == "abc"
        assert data["origin"] == "http://evil.test"
        assert data["kind"] == "menu-updated"

    def test_unset_extras_omitted(self):
        data = json.loads(JsonFormatter().format(_record()))
        assert "channel_id" not in data
        assert "restaurant_id" not in data

    def test_exception(self):
        try:
            raise ValueError("bad frame")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "oops", (), sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad frame" in data["exception"]


class TestMetrics:
    def test_request_counters(self):
        record_request("GET", "/api/mesas", 200, 0.01)
        record_request("GET", "/api/mesas", 500, 0.02)
        body = generate_metrics()
        assert 'menudigital_http_requests_total{method="GET",path="/api/mesas",status="200"} 1' in body
        assert 'menudigital_http_errors_total{method="GET",path="/api/mesas"} 1' in body
        assert 'menudigital_http_request_duration_seconds_count{method="GET",path="/api/mesas"} 2' in body

    def test_hub_and_gate(self):
        stats = HubStats()
        stats.broadcasts_total = 3
        gate = OriginGate(["http://a.test"])
        gate.is_allowed("http://b.test")
        body = generate_metrics(stats, gate)
        assert "menudigital_channel_broadcasts_total 3" in body
        assert "menudigital_channel_origin_rejected_total 1" in body

    def test_routes_without_errors_have_no_error_sample(self):
        record_request("GET", "/health", 200, 0.5)
        record_request("GET", "/health", 200, 0.25)
        body = generate_metrics()
        assert 'menudigital_http_request_duration_seconds_sum{method="GET",path="/health"} 0.750000' in body
        assert 'menudigital_http_errors_total{method="GET",path="/health"}' not in body

    def test_reset_forgets_requests(self):
        record_request("POST", "/api/menu", 201, 0.01)
        reset_metrics()
        assert "/api/menu" not in generate_metrics()

    def test_every_family_has_help_and_type(self):
        body = generate_metrics(HubStats(), OriginGate([]))
        names = [line.split()[2] for line in body.splitlines() if line.startswith("# TYPE")]
        helped = [line.split()[2] for line in body.splitlines() if line.startswith("# HELP")]
        assert names == helped
        assert "menudigital_channel_send_failures_total" in names
