#!/usr/bin/env python3
"""
Tests for request adaptation and fingerprint data models.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from devicetrust.fingerprint.models import ClientTelemetry, RiskAssessment, Severity
from devicetrust.fingerprint.request import RequestContext, as_request_context


class TestRequestContext:

    def test_case_insensitive(self):
        ctx = RequestContext(headers={"User-Agent": "UA", "X-Forwarded-For": "8.8.8.8"})
        assert ctx.header("user-agent") == "UA"
        assert ctx.header("USER-AGENT") == "UA"
        assert ctx.has_header("x-forwarded-for")

    def test_missing_and_empty(self):
        ctx = RequestContext(headers={"Accept": "", "DNT": None})
        assert ctx.header("accept") == ""
        assert not ctx.has_header("accept")
        assert ctx.header("dnt", "unset") == "unset"

    def test_from_aiohttp(self):
        request = MagicMock()
        request.headers.items.return_value = [
            ("User-Agent", "UA"),
            ("X-Forwarded-For", "203.0.113.5"),
            ("x-forwarded-for", "10.0.0.1"),
        ]
        request.transport.get_extra_info.return_value = ("192.0.2.10", 51234)
        request.remote = "192.0.2.10"
        request.method = "POST"
        request.path = "/login"

        ctx = RequestContext.from_aiohttp(request)

        assert ctx.header("x-forwarded-for") == "203.0.113.5, 10.0.0.1"
        assert ctx.remote_addr == "192.0.2.10"
        assert ctx.method == "POST"
        assert ctx.path == "/login"

    def test_from_aiohttp_unix_socket(self):
        request = MagicMock()
        request.headers.items.return_value = [("User-Agent", "UA")]
        request.transport.get_extra_info.return_value = "/run/app.sock"
        request.remote = None
        request.method = "GET"
        request.path = "/"

        ctx = RequestContext.from_aiohttp(request)
        assert ctx.remote_addr is None

    def test_coercion(self):
        ctx = RequestContext()
        assert as_request_context(ctx) is ctx
        assert as_request_context(None).headers == {}
        assert as_request_context({"Accept": "*/*"}).header("accept") == "*/*"

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            as_request_context(42)


class TestClientTelemetry:

    def test_empty(self):
        assert ClientTelemetry.from_dict(None) is None
        assert ClientTelemetry.from_dict({}) is None

    def test_camel_case_keys(self):
        telemetry = ClientTelemetry.from_dict({
            "screenResolution": "2560x1440",
            "colorDepth": 24,
            "deviceMemory": 8,
            "mimeTypes": "application/pdf",
        })
        assert telemetry.screen_resolution == "2560x1440"
        assert telemetry.color_depth == 24
        assert telemetry.mime_types == ["application/pdf"]

    def test_hash_ignores_session_and_behaviour(self):
        a = ClientTelemetry.from_dict({"canvas": "x1", "sessionId": "s1", "mouseMovements": [1, 2]})
        b = ClientTelemetry.from_dict({"canvas": "x1", "sessionId": "s2"})
        assert a.compute_hash() == b.compute_hash()
        assert len(a.compute_hash()) == 64

    def test_plugin_order_irrelevant(self):
        a = ClientTelemetry(plugins=["b", "a"])
        b = ClientTelemetry(plugins=["a", "b"])
        assert a.compute_hash() == b.compute_hash()

    def test_no_stable_values(self):
        assert ClientTelemetry(session_id="s1").compute_hash() == ""


class TestRiskAssessment:

    def test_add(self):
        risk = RiskAssessment()
        risk.add(30, "VPN detected")
        risk.add(10, "Missing Accept header")
        assert risk.score == 40
        assert risk.factors == ["VPN detected", "Missing Accept header"]

    def test_to_dict(self):
        risk = RiskAssessment(score=85, factors=["Tor exit node detected"], severity=Severity.CRITICAL)
        assert risk.to_dict()["severity"] == "CRITICAL"
