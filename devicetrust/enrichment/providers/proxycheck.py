#!/usr/bin/env python3
"""
proxycheck.io Provider - proxy and VPN detection with a native risk score.

API docs: https://proxycheck.io/api/

Config key: proxycheck_api_key (env: PROXYCHECK_API_KEY)
"""

import asyncio

import aiohttp

from .base import BaseProvider, ProviderResult
from ..signals import NetworkSignal


class ProxyCheckProvider(BaseProvider):
    """
    proxycheck.io v2 lookup.
    Reports proxy/VPN status, a 0-100 risk score and the network operator.
    """

    name = "proxycheck"
    requires_api_key = True

    API_URL = "https://proxycheck.io/v2/{ip}"

    async def lookup(self, ip: str) -> ProviderResult:
        """
        Look up IP on proxycheck.io.

        Args:
            ip: IP address to check

        Returns:
            ProviderResult with VPN/proxy flags and the native risk score
        """
        if not self.enabled:
            return self._error_result(ip, "API key not configured")

        if not self.can_lookup(ip):
            return self._error_result(ip, "Not a public IP address")

        params = {
            "key": self.api_key,
            "vpn": 1,
            "risk": 1,
            "asn": 1,
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.API_URL.format(ip=ip),
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status == 401:
                        return self._error_result(ip, "Invalid API key")
                    elif response.status == 429:
                        return self._error_result(ip, "Rate limit exceeded")
                    elif response.status != 200:
                        return self._error_result(ip, f"API error: HTTP {response.status}")

                    data = await response.json(content_type=None)

        except asyncio.TimeoutError:
            return self._error_result(ip, "Timeout")
        except aiohttp.ClientError as e:
            return self._error_result(ip, f"Connection error: {str(e)}")
        except ValueError as e:
            return self._error_result(ip, f"Malformed response: {str(e)}")

        return self._parse_response(ip, data)

    def _parse_response(self, ip: str, data: dict) -> ProviderResult:
        """Parse a v2 response body"""
        status = data.get("status")
        if status not in ("ok", "warning"):
            return self._error_result(ip, data.get("message") or f"API status: {status}")

        entry = data.get(ip)
        if not isinstance(entry, dict):
            return self._error_result(ip, "IP missing from response")

        proxy_type = str(entry.get("type", "")).lower()

        try:
            risk = int(entry.get("risk", 0) or 0)
        except (TypeError, ValueError):
            risk = 0

        signal = NetworkSignal(
            source=self.name,
            is_vpn=proxy_type == "vpn",
            is_proxy=entry.get("proxy") == "yes",
            score=risk,
            provider=entry.get("provider") or None,
        )

        return self._signal_result(
            ip,
            signal,
            isp=entry.get("provider"),
            country=entry.get("isocode"),
            raw=entry,
        )
