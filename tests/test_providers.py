#!/usr/bin/env python3
"""
Tests for network reputation detectors.
External services are never contacted; aiohttp sessions and DNS are patched.
"""

import asyncio
import socket
import sys
from pathlib import Path
from unittest.mock import patch

import aiohttp
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from devicetrust.enrichment.providers import (
    HostingOrgDetector,
    IPApiProvider,
    ProxyCheckProvider,
    ReverseDNSProvider,
    TorExitListProvider,
)
from devicetrust.config import DEFAULT_HOSTING_KEYWORDS, DEFAULT_VPN_HOSTNAME_KEYWORDS

PUBLIC_IP = "203.0.113.5"


class _FakeResponse:
    def __init__(self, status, payload):
        self.status = status
        self._payload = payload

    async def json(self, content_type=None):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeSession:
    """Stands in for aiohttp.ClientSession; records the last request."""

    def __init__(self, status=200, payload=None):
        self.status = status
        self.payload = payload or {}
        self.calls = []

    def __call__(self, *args, **kwargs):
        return self

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return _FakeResponse(self.status, self.payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


# =============================================================================
# Reverse DNS
# =============================================================================

class TestReverseDNSProvider:

    @pytest.mark.asyncio
    async def test_keyword_match_flags_vpn(self):
        provider = ReverseDNSProvider()
        with patch("devicetrust.enrichment.providers.reverse_dns.socket.gethostbyaddr",
                   return_value=("nl-ams-vpn-12.example.net", [], [PUBLIC_IP])):
            result = await provider.lookup(PUBLIC_IP)

        assert result.success
        assert result.signal.is_vpn
        assert not result.signal.is_proxy
        assert result.signal.score == 20
        assert result.raw["keyword"] == "vpn"

    @pytest.mark.asyncio
    async def test_proxy_keyword_flags_proxy(self):
        provider = ReverseDNSProvider()
        with patch("devicetrust.enrichment.providers.reverse_dns.socket.gethostbyaddr",
                   return_value=("proxy3.isp.example", ["alias.example"], [PUBLIC_IP])):
            result = await provider.lookup(PUBLIC_IP)

        assert result.signal.is_proxy
        assert result.signal.score == 20

    @pytest.mark.asyncio
    async def test_clean_hostname_zero_signal(self):
        provider = ReverseDNSProvider()
        with patch("devicetrust.enrichment.providers.reverse_dns.socket.gethostbyaddr",
                   return_value=("host-5.broadband.example.com", [], [PUBLIC_IP])):
            result = await provider.lookup(PUBLIC_IP)

        assert result.success
        assert result.signal.score == 0
        assert not result.signal.is_vpn

    @pytest.mark.asyncio
    async def test_dns_failure_is_no_signal(self):
        """A failed PTR lookup is 'no signal', not an exception."""
        provider = ReverseDNSProvider()
        with patch("devicetrust.enrichment.providers.reverse_dns.socket.gethostbyaddr",
                   side_effect=socket.herror(1, "Unknown host")):
            result = await provider.lookup(PUBLIC_IP)

        assert not result.success
        assert result.signal is None
        assert "Reverse lookup failed" in result.error

    @pytest.mark.asyncio
    async def test_private_ip_skipped(self):
        result = await ReverseDNSProvider().lookup("192.168.1.10")
        assert result.signal is None

    def test_disabled(self):
        assert not ReverseDNSProvider(enabled=False).enabled

    def test_default_keywords_from_config(self):
        assert ReverseDNSProvider().keywords == DEFAULT_VPN_HOSTNAME_KEYWORDS


# =============================================================================
# proxycheck.io
# =============================================================================

class TestProxyCheckProvider:

    def test_requires_key(self):
        assert not ProxyCheckProvider().enabled
        assert ProxyCheckProvider(api_key="k").enabled

    @pytest.mark.asyncio
    async def test_disabled_returns_error_result(self):
        result = await ProxyCheckProvider().lookup(PUBLIC_IP)
        assert not result.success
        assert result.error == "API key not configured"

    @pytest.mark.asyncio
    async def test_vpn_response(self):
        session = _FakeSession(payload={
            "status": "ok",
            PUBLIC_IP: {"proxy": "yes", "type": "VPN", "risk": 66, "provider": "M247 Ltd", "isocode": "NL"},
        })
        provider = ProxyCheckProvider(api_key="secret", timeout=2)
        with patch("devicetrust.enrichment.providers.proxycheck.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert result.success
        assert result.signal.is_vpn
        assert result.signal.is_proxy
        assert result.signal.score == 66
        assert result.signal.provider == "M247 Ltd"
        assert result.country == "NL"

        url, kwargs = session.calls[0]
        assert url.endswith(PUBLIC_IP)
        assert kwargs["params"]["key"] == "secret"

    @pytest.mark.asyncio
    async def test_clean_response(self):
        session = _FakeSession(payload={"status": "ok", PUBLIC_IP: {"proxy": "no", "type": "Business", "risk": 0}})
        provider = ProxyCheckProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.proxycheck.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert result.success
        assert not result.signal.is_vpn
        assert not result.signal.is_proxy
        assert result.signal.score == 0

    @pytest.mark.asyncio
    async def test_denied_status(self):
        session = _FakeSession(payload={"status": "denied", "message": "Key disabled"})
        provider = ProxyCheckProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.proxycheck.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert not result.success
        assert result.error == "Key disabled"

    @pytest.mark.asyncio
    async def test_http_error(self):
        session = _FakeSession(status=429)
        provider = ProxyCheckProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.proxycheck.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert result.signal is None
        assert result.error == "Rate limit exceeded"

    @pytest.mark.asyncio
    async def test_connection_error_is_no_signal(self):
        provider = ProxyCheckProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.proxycheck.aiohttp.ClientSession",
                   side_effect=aiohttp.ClientError("connection refused")):
            result = await provider.lookup(PUBLIC_IP)

        assert not result.success
        assert result.signal is None
        assert "Connection error" in result.error

    @pytest.mark.asyncio
    async def test_timeout_is_no_signal(self):
        provider = ProxyCheckProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.proxycheck.aiohttp.ClientSession",
                   side_effect=asyncio.TimeoutError()):
            result = await provider.lookup(PUBLIC_IP)

        assert result.error == "Timeout"


# =============================================================================
# ip-api.com
# =============================================================================

class TestIPApiProvider:

    @pytest.mark.asyncio
    async def test_proxy_and_hosting(self):
        session = _FakeSession(payload={
            "status": "success", "countryCode": "US", "isp": "DigitalOcean, LLC",
            "proxy": True, "hosting": True,
        })
        provider = IPApiProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.ipapi.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert result.signal.is_proxy
        assert result.signal.is_hosting
        assert result.signal.score == 25 + 15
        assert result.signal.provider == "DigitalOcean, LLC"
        assert result.isp == "DigitalOcean, LLC"

    @pytest.mark.asyncio
    async def test_residential(self):
        session = _FakeSession(payload={
            "status": "success", "countryCode": "DE", "isp": "Deutsche Telekom AG",
            "proxy": False, "hosting": False,
        })
        provider = IPApiProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.ipapi.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert result.success
        assert result.signal.score == 0
        assert result.signal.provider is None
        assert result.isp == "Deutsche Telekom AG"

    @pytest.mark.asyncio
    async def test_fail_status(self):
        session = _FakeSession(payload={"status": "fail", "message": "reserved range"})
        provider = IPApiProvider(api_key="secret")
        with patch("devicetrust.enrichment.providers.ipapi.aiohttp.ClientSession", session):
            result = await provider.lookup(PUBLIC_IP)

        assert result.signal is None
        assert result.error == "reserved range"

    @pytest.mark.asyncio
    async def test_without_key(self):
        result = await IPApiProvider().lookup(PUBLIC_IP)
        assert result.signal is None


# =============================================================================
# Tor exit list and hosting heuristic
# =============================================================================

class TestTorExitListProvider:

    def test_disabled_without_list(self):
        assert not TorExitListProvider().enabled

    @pytest.mark.asyncio
    async def test_membership(self):
        provider = TorExitListProvider(exit_nodes=["185.220.101.1"])
        hit = await provider.lookup("185.220.101.1")
        miss = await provider.lookup(PUBLIC_IP)
        assert hit.signal.is_tor
        assert not miss.signal.is_tor

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "exits.txt"
        path.write_text("# comment\n185.220.101.1\n\n185.220.101.2\n")
        provider = TorExitListProvider(path=str(path))
        assert provider.exit_nodes == {"185.220.101.1", "185.220.101.2"}

    def test_missing_file(self, tmp_path):
        provider = TorExitListProvider(path=str(tmp_path / "nope.txt"))
        assert not provider.enabled


class TestHostingOrgDetector:

    def setup_method(self):
        self.detector = HostingOrgDetector(DEFAULT_HOSTING_KEYWORDS)

    def test_cloud_org(self):
        signal = self.detector.detect("AMAZON-02")
        assert signal.is_hosting
        assert signal.provider == "AMAZON-02"
        assert signal.score == 0

    def test_residential_org(self):
        assert self.detector.detect("Comcast Cable Communications, LLC") is None

    def test_empty_org(self):
        assert self.detector.detect("") is None
