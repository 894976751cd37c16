#!/usr/bin/env python3
"""
Network Detector - VPN / proxy / Tor / hosting classification for an IP.

Runs the network detectors concurrently, each bounded by its own timeout,
then folds their signals together with the local hosting heuristic. There
is no retry: a slow or failing detector simply contributes no signal.
"""

import asyncio
import logging
from typing import List, Optional

from ..config import DetectionConfig
from ..utils.geoip import GeoResult
from .providers import (
    BaseProvider,
    HostingOrgDetector,
    IPApiProvider,
    ProviderResult,
    ProxyCheckProvider,
    ReverseDNSProvider,
    TorExitListProvider,
)
from .signals import NetworkSignal, VpnProxyAssessment, merge_signals

logger = logging.getLogger("devicetrust.enrichment")


class NetworkDetector:
    """
    Combines independent network reputation detectors.

    Usage:
        detector = NetworkDetector.from_config(DetectionConfig.from_env())
        assessment = await detector.detect("203.0.113.5", geo)
    """

    def __init__(
        self,
        providers: List[BaseProvider],
        hosting: HostingOrgDetector,
        timeout: float = 5.0,
        fallback_risk_score: int = 10,
    ):
        """
        Args:
            providers: Network detectors, in merge priority order
            hosting: Local hosting organisation heuristic
            timeout: Upper bound for each detector call
            fallback_risk_score: Score returned when aggregation fails
        """
        self.providers = providers
        self.hosting = hosting
        self.timeout = timeout
        self.fallback_risk_score = fallback_risk_score

    @classmethod
    def from_config(cls, config: DetectionConfig) -> "NetworkDetector":
        timeout = config.request_timeout
        providers: List[BaseProvider] = [
            ReverseDNSProvider(
                keywords=config.vpn_hostname_keywords,
                timeout=timeout,
                enabled=config.reverse_dns_enabled,
            ),
            ProxyCheckProvider(api_key=config.proxycheck_api_key, timeout=timeout),
            IPApiProvider(api_key=config.ipapi_api_key, timeout=timeout),
            TorExitListProvider(path=config.tor_exit_list_path),
        ]
        return cls(
            providers=providers,
            hosting=HostingOrgDetector(config.hosting_keywords),
            timeout=timeout,
            fallback_risk_score=config.fallback_risk_score,
        )

    @property
    def enabled_providers(self) -> List[str]:
        return [p.name for p in self.providers if p.enabled]

    async def _query(self, provider: BaseProvider, ip: str) -> ProviderResult:
        """Query one detector; timeouts and errors become error results"""
        try:
            return await asyncio.wait_for(provider.lookup(ip), timeout=self.timeout)
        except asyncio.TimeoutError:
            return provider._error_result(ip, "Timeout")
        except Exception as e:
            logger.warning(f"{provider.name} lookup raised for {ip}: {e}")
            return provider._error_result(ip, f"Unexpected error: {str(e)}")

    async def collect(self, ip: str) -> List[ProviderResult]:
        """Run every enabled network detector concurrently."""
        active = [p for p in self.providers if p.enabled]
        if not active:
            return []
        return list(await asyncio.gather(*(self._query(p, ip) for p in active)))

    async def detect(self, ip: str, geo: Optional[GeoResult] = None) -> VpnProxyAssessment:
        """
        Classify ``ip``.

        Args:
            ip: Resolved client IP
            geo: Geolocation for the IP, used by the hosting heuristic

        Returns:
            VpnProxyAssessment; a fixed moderate-risk fallback if the
            aggregation itself fails
        """
        try:
            results = await self.collect(ip)
            signals: List[Optional[NetworkSignal]] = [r.signal for r in results]
            signals.append(self.hosting.detect(geo.organization if geo else ""))

            assessment = merge_signals(signals)

            if logger.isEnabledFor(logging.DEBUG):
                errors = [f"{r.provider}: {r.error}" for r in results if not r.success]
                logger.debug(
                    f"Network detection for {ip}: score={assessment.risk_score} "
                    f"sources={assessment.sources} errors={errors}"
                )
            return assessment

        except Exception as e:
            logger.warning(f"VPN/proxy detection failed for {ip}: {e}")
            return VpnProxyAssessment.fallback(self.fallback_risk_score)
