#!/usr/bin/env python3
"""
ip-api.com Provider - IP intelligence with proxy and hosting classification.

Uses the Pro endpoint (HTTPS, key required).
API docs: https://members.ip-api.com/docs/json

Config key: ipapi_api_key (env: IPAPI_API_KEY)
"""

import asyncio

import aiohttp

from .base import BaseProvider, ProviderResult
from ..signals import NetworkSignal

PROXY_SCORE = 25
HOSTING_SCORE = 15


class IPApiProvider(BaseProvider):
    """
    ip-api.com Pro lookup.
    Reports proxy and hosting status plus the ISP name; no native risk score,
    so one is derived from the flags it returns.
    """

    name = "ipapi"
    requires_api_key = True

    API_URL = "https://pro.ip-api.com/json/{ip}"
    FIELDS = "status,message,countryCode,isp,org,as,proxy,hosting"

    async def lookup(self, ip: str) -> ProviderResult:
        if not self.enabled:
            return self._error_result(ip, "API key not configured")

        if not self.can_lookup(ip):
            return self._error_result(ip, "Not a public IP address")

        params = {"key": self.api_key, "fields": self.FIELDS}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.API_URL.format(ip=ip),
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status == 403:
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
        if data.get("status") != "success":
            return self._error_result(ip, data.get("message") or "Lookup failed")

        is_proxy = bool(data.get("proxy"))
        is_hosting = bool(data.get("hosting"))

        score = 0
        if is_proxy:
            score += PROXY_SCORE
        if is_hosting:
            score += HOSTING_SCORE

        isp = data.get("isp") or None
        signal = NetworkSignal(
            source=self.name,
            is_proxy=is_proxy,
            is_hosting=is_hosting,
            score=score,
            # An ISP name alone says nothing about anonymisation
            provider=isp if (is_proxy or is_hosting) else None,
        )

        return self._signal_result(
            ip,
            signal,
            isp=isp,
            country=data.get("countryCode"),
            raw=data,
        )
