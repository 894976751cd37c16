#!/usr/bin/env python3
"""
devicetrust Fingerprinting Engine

Builds a flow-stable device identity from request headers, classifies the
network origin and scores the request for fraud risk. The engine holds only
static configuration; every call is independent.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..config import DetectionConfig
from ..enrichment.engine import NetworkDetector
from ..enrichment.signals import (
    HOSTING_INCREMENT,
    PROXY_INCREMENT,
    TOR_INCREMENT,
    VPN_INCREMENT,
    VpnProxyAssessment,
)
from ..utils.geoip import GeoIPResolver, GeoResult
from ..utils.ipaddr import extract_real_ip
from .extractors.http import HTTPFingerprintExtractor
from .models import (
    ClientTelemetry,
    DeviceFingerprint,
    NetworkInfo,
    RiskAssessment,
    Severity,
)
from .request import RequestContext, as_request_context

logger = logging.getLogger("devicetrust.fingerprint")

HIGH_RISK_COUNTRY_POINTS = 20
BOT_LIKE_POINTS = 30
MISSING_ACCEPT_LANGUAGE_POINTS = 10
MISSING_ACCEPT_POINTS = 10
SUSPICIOUS_UA_POINTS = 20
NO_CLIENT_HINTS_POINTS = 15


class FingerprintEngine:
    """
    Device fingerprinting and risk scoring.

    Usage:
        engine = FingerprintEngine(DetectionConfig.from_env())

        fingerprint = await engine.generate_fingerprint(
            RequestContext.from_headers(headers, remote_addr=peer),
            additional_client_data=payload.get("deviceData"),
        )
        if fingerprint.risk_assessment.severity is Severity.CRITICAL:
            ...
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        geoip: Optional[GeoIPResolver] = None,
        network_detector: Optional[NetworkDetector] = None,
    ):
        """
        Args:
            config: Detection configuration (defaults to built-in values,
                no API keys)
            geoip: GeoIP resolver; built from config when omitted
            network_detector: VPN/proxy detector; built from config when omitted
        """
        self.config = config or DetectionConfig()
        self.http_extractor = HTTPFingerprintExtractor(
            bot_patterns=self.config.bot_patterns,
            min_browser_versions=self.config.min_browser_versions,
        )
        self.geoip = geoip or GeoIPResolver(
            city_db_path=self.config.geoip_city_db,
            asn_db_path=self.config.geoip_asn_db,
            enabled=self.config.geoip_enabled,
        )
        self.network_detector = network_detector or NetworkDetector.from_config(self.config)
        self._high_risk_countries = frozenset(c.upper() for c in self.config.high_risk_countries)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_fingerprint(
        self,
        request: Any,
        additional_client_data: Optional[Mapping[str, Any]] = None,
    ) -> DeviceFingerprint:
        """
        Fingerprint and score one request.

        Args:
            request: RequestContext, header mapping or aiohttp request
            additional_client_data: Optional client telemetry payload

        Returns:
            A complete DeviceFingerprint; missing headers and unavailable
            signals degrade the result instead of raising.
        """
        ctx = as_request_context(request)

        ip = self.extract_real_ip(ctx)
        parsed_ua = self.http_extractor.parse_user_agent(ctx.header("user-agent"))

        components = self.http_extractor.basic_components(ctx, ip, parsed_ua)
        fingerprint_hash = self.http_extractor.hash_components(components)
        extended_hash = self.http_extractor.hash_components(
            self.http_extractor.extended_components(ctx, components)
        )

        telemetry = self._parse_telemetry(additional_client_data)

        geo = self.lookup_geo(ip)
        vpn_detection = await self.detect_vpn_proxy(ip, geo)
        risk = self.calculate_risk_score(ctx, geo, vpn_detection, parsed_ua)

        fingerprint = DeviceFingerprint(
            fingerprint_hash=fingerprint_hash,
            extended_hash=extended_hash,
            network_info=NetworkInfo(ip=ip, geolocation=geo, vpn_detection=vpn_detection),
            risk_assessment=risk,
            components=components,
            user_agent=parsed_ua,
            telemetry=telemetry,
            telemetry_hash=telemetry.compute_hash() if telemetry else "",
        )

        logger.info(
            f"Fingerprint generated: {fingerprint.hash_preview}... "
            f"risk_score={risk.score} severity={risk.severity.value}"
        )
        return fingerprint

    def generate_fingerprint_sync(
        self,
        request: Any,
        additional_client_data: Optional[Mapping[str, Any]] = None,
    ) -> DeviceFingerprint:
        """Synchronous wrapper for generate_fingerprint"""
        return asyncio.run(self.generate_fingerprint(request, additional_client_data))

    def extract_real_ip(self, request: Any) -> str:
        """Client IP after proxy header precedence; ``"unknown"`` if unresolvable."""
        ctx = as_request_context(request)
        return extract_real_ip(ctx.headers, remote_addr=ctx.remote_addr, request_ip=ctx.ip)

    async def detect_vpn_proxy(
        self, ip: str, geo: Optional[GeoResult] = None
    ) -> VpnProxyAssessment:
        """Classify ``ip`` as VPN/proxy/Tor/hosting. Never raises."""
        try:
            return await self.network_detector.detect(ip, geo)
        except Exception as e:
            logger.warning(f"VPN/proxy detection failed for {ip}: {e}")
            return VpnProxyAssessment.fallback(self.config.fallback_risk_score)

    def lookup_geo(self, ip: str) -> Optional[GeoResult]:
        """Best-effort geolocation; None on any failure."""
        try:
            return self.geoip.lookup(ip)
        except Exception as e:
            logger.debug(f"GeoIP lookup failed for {ip}: {e}")
            return None

    def calculate_risk_score(
        self,
        request: Any,
        geo: Optional[GeoResult],
        vpn_assessment: VpnProxyAssessment,
        parsed_user_agent: Optional[Mapping[str, str]] = None,
    ) -> RiskAssessment:
        """
        Additive risk score.

        Each check adds points and a factor description. A check that fails
        internally contributes nothing.
        """
        ctx = as_request_context(request)
        if parsed_user_agent is None:
            parsed_user_agent = self.http_extractor.parse_user_agent(ctx.header("user-agent"))

        risk = RiskAssessment()

        checks: Dict[str, Callable[[], None]] = {
            'network': lambda: self._score_network(risk, vpn_assessment),
            'geo': lambda: self._score_geo(risk, geo),
            'bot': lambda: self._score_bot(risk, ctx),
            'headers': lambda: self._score_headers(risk, ctx),
            'user_agent': lambda: self._score_user_agent(risk, parsed_user_agent),
            'client_hints': lambda: self._score_client_hints(risk, ctx),
        }
        for name, check in checks.items():
            try:
                check()
            except Exception as e:
                logger.warning(f"Risk check '{name}' failed: {e}")

        risk.severity = Severity.from_score(risk.score)
        return risk

    # ------------------------------------------------------------------
    # Risk checks
    # ------------------------------------------------------------------

    @staticmethod
    def _score_network(risk: RiskAssessment, vpn: VpnProxyAssessment) -> None:
        if vpn.is_vpn:
            risk.add(VPN_INCREMENT, "VPN detected")
        if vpn.is_proxy:
            risk.add(PROXY_INCREMENT, "Proxy detected")
        if vpn.is_tor:
            risk.add(TOR_INCREMENT, "Tor exit node detected")
        if vpn.is_hosting:
            label = f" ({vpn.provider})" if vpn.provider else ""
            risk.add(HOSTING_INCREMENT, f"Hosting provider IP{label}")

    def _score_geo(self, risk: RiskAssessment, geo: Optional[GeoResult]) -> None:
        if geo and geo.country_code and geo.country_code.upper() in self._high_risk_countries:
            risk.add(HIGH_RISK_COUNTRY_POINTS, f"High-risk country: {geo.country_code.upper()}")

    def _score_bot(self, risk: RiskAssessment, ctx: RequestContext) -> None:
        if self.http_extractor.is_bot_like(ctx):
            risk.add(BOT_LIKE_POINTS, "Bot-like request")

    @staticmethod
    def _score_headers(risk: RiskAssessment, ctx: RequestContext) -> None:
        if not ctx.has_header("accept-language"):
            risk.add(MISSING_ACCEPT_LANGUAGE_POINTS, "Missing Accept-Language header")
        if not ctx.has_header("accept"):
            risk.add(MISSING_ACCEPT_POINTS, "Missing Accept header")

    def _score_user_agent(self, risk: RiskAssessment, parsed_ua: Mapping[str, str]) -> None:
        reasons = self.http_extractor.suspicious_user_agent_reasons(parsed_ua)
        if reasons:
            risk.add(SUSPICIOUS_UA_POINTS, f"Suspicious user agent: {', '.join(reasons)}")

    def _score_client_hints(self, risk: RiskAssessment, ctx: RequestContext) -> None:
        if self.http_extractor.lacks_client_hints_and_mobile(ctx):
            risk.add(NO_CLIENT_HINTS_POINTS, "No client hints or mobile indicator")

    @staticmethod
    def _parse_telemetry(data: Optional[Mapping[str, Any]]) -> Optional[ClientTelemetry]:
        try:
            return ClientTelemetry.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug(f"Ignoring malformed client telemetry: {e}")
            return None
