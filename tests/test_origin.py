"""Tests for the Origin Gate allow-list check."""

import re

from menudigital.config import parse_origin_entries
from menudigital.realtime.origin import OriginGate


def _gate(*entries):
    return OriginGate(parse_origin_entries(list(entries)))


class TestExactOrigins:
    def test_exact_match_allowed(self):
        gate = _gate("http://localhost:5173")
        assert gate.is_allowed("http://localhost:5173")

    def test_different_port_rejected(self):
        gate = _gate("http://localhost:5173")
        assert not gate.is_allowed("http://localhost:3000")

    def test_trailing_slash_in_config_is_ignored(self):
        gate = _gate("https://menu.example.com/")
        assert gate.is_allowed("https://menu.example.com")

    def test_case_sensitive(self):
        gate = _gate("https://menu.example.com")
        assert not gate.is_allowed("https://MENU.example.com")


class TestPatternOrigins:
    def test_preview_deployment_allowed(self):
        gate = _gate(r"re:https://[\w-]+\.vercel\.app")
        assert gate.is_allowed("https://menu-digital-git-feature-x.vercel.app")

    def test_pattern_must_match_whole_origin(self):
        gate = _gate(r"re:https://[\w-]+\.vercel\.app")
        assert not gate.is_allowed("https://evil.vercel.app.attacker.com")
        assert not gate.is_allowed("http://x.vercel.app")

    def test_compiled_pattern_accepted_directly(self):
        gate = OriginGate([re.compile(r"https://\w+\.example\.com")])
        assert gate.is_allowed("https://shop.example.com")


class TestAbsentOrigin:
    def test_none_allowed(self):
        assert _gate("http://localhost:5173").is_allowed(None)

    def test_empty_allowed(self):
        assert _gate().is_allowed("")

    def test_absent_origin_not_counted(self):
        gate = _gate()
        gate.is_allowed(None)
        assert gate.rejected_total == 0


class TestRejectionCounter:
    def test_counts_each_rejection(self):
        gate = _gate("http://localhost:5173")
        gate.is_allowed("http://evil.test")
        gate.is_allowed("http://evil.test")
        gate.is_allowed("http://localhost:5173")
        assert gate.rejected_total == 2

    def test_allow_list_is_a_copy(self):
        gate = _gate("http://a.test")
        gate.allow_list.append("http://b.test")
        assert not gate.is_allowed("http://b.test")

    def test_from_settings(self, settings):
        gate = OriginGate.from_settings(settings)
        assert gate.is_allowed("http://localhost:5173")
        assert not gate.is_allowed("https://menu-digital-bdhg.vercel.app")
