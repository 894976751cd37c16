#!/usr/bin/env python3
"""
Reverse DNS Provider - PTR hostname keyword heuristic.

Commercial VPN and proxy exits frequently carry telltale words in their
PTR records (``vpn-nl-12.example.net``, ``proxy3.isp.example``). No API key
is required.
"""

import asyncio
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from .base import BaseProvider, ProviderResult
from ..signals import NetworkSignal
from ...config import DEFAULT_VPN_HOSTNAME_KEYWORDS

REVERSE_DNS_SCORE = 20

# Must not be the loop default executor; asyncio.run joins that on shutdown.
_RESOLVER_POOL = ThreadPoolExecutor(max_workers=8, thread_name_prefix="devicetrust-ptr")


class ReverseDNSProvider(BaseProvider):
    """
    Flags VPN/proxy when a PTR hostname contains a known keyword.
    """

    name = "reverse_dns"
    requires_api_key = False

    def __init__(
        self,
        keywords: Sequence[str] = DEFAULT_VPN_HOSTNAME_KEYWORDS,
        timeout: float = 5.0,
        enabled: bool = True,
    ):
        super().__init__(timeout=timeout)
        self.keywords = tuple(k.lower() for k in keywords)
        self._enabled = enabled

    async def resolve(self, ip: str) -> List[str]:
        """Resolve PTR hostnames for ``ip`` on the resolver thread pool."""
        loop = asyncio.get_event_loop()
        hostname, aliases, _ = await asyncio.wait_for(
            loop.run_in_executor(_RESOLVER_POOL, socket.gethostbyaddr, ip),
            timeout=self.timeout,
        )
        return [hostname] + list(aliases)

    def match_keyword(self, hostnames: Sequence[str]) -> Optional[str]:
        for hostname in hostnames:
            lowered = hostname.lower()
            for keyword in self.keywords:
                if keyword in lowered:
                    return keyword
        return None

    async def lookup(self, ip: str) -> ProviderResult:
        if not self.can_lookup(ip):
            return self._error_result(ip, "Not a public IP address")

        try:
            hostnames = await self.resolve(ip)
        except asyncio.TimeoutError:
            return self._error_result(ip, "Reverse lookup timed out")
        except (socket.herror, socket.gaierror, OSError) as e:
            return self._error_result(ip, f"Reverse lookup failed: {e}")

        keyword = self.match_keyword(hostnames)
        if keyword is None:
            return self._signal_result(
                ip, NetworkSignal(source=self.name), raw={"hostnames": hostnames}
            )

        signal = NetworkSignal(
            source=self.name,
            is_vpn=keyword != "proxy",
            is_proxy=keyword == "proxy",
            score=REVERSE_DNS_SCORE,
        )
        return self._signal_result(
            ip, signal, raw={"hostnames": hostnames, "keyword": keyword}
        )
