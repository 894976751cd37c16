#!/usr/bin/env python3
"""
Detection configuration for devicetrust.

All tunables used by the fingerprinting engine and the network detectors
live on a single DetectionConfig that is handed to the engine at
construction time. Nothing in the scoring path reads the process
environment directly.

Environment variables (DetectionConfig.from_env):
    PROXYCHECK_API_KEY              - proxycheck.io key (enables that detector)
    IPAPI_API_KEY                   - ip-api.com Pro key (enables that detector)
    DEVICETRUST_REQUEST_TIMEOUT     - per external call timeout in seconds (default: 5)
    DEVICETRUST_HIGH_RISK_COUNTRIES - comma separated ISO country codes
    DEVICETRUST_TOR_EXIT_LIST       - path to a newline separated Tor exit node list
    DEVICETRUST_REVERSE_DNS         - enable PTR keyword heuristic (default: true)
    GEOIP_DB_PATH                   - path to GeoLite2-City.mmdb
    GEOIP_ASN_DB_PATH               - path to GeoLite2-ASN.mmdb
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger("devicetrust.config")


DEFAULT_HIGH_RISK_COUNTRIES = ("CN", "RU", "IR", "KP", "SY")

DEFAULT_BOT_PATTERNS = (
    r"bot",
    r"crawler",
    r"spider",
    r"scraper",
    r"headless",
    r"phantom",
    r"selenium",
    r"puppeteer",
    r"playwright",
    r"curl",
    r"wget",
    r"python",
    r"java",
    r"go-http",
)

DEFAULT_VPN_HOSTNAME_KEYWORDS = ("vpn", "proxy", "tor", "tunnel", "anonymous")

DEFAULT_HOSTING_KEYWORDS = (
    "amazon",
    "aws",
    "google",
    "microsoft",
    "azure",
    "digitalocean",
    "linode",
    "akamai",
    "vultr",
    "ovh",
    "hetzner",
    "alibaba",
    "oracle",
    "cloudflare",
    "leaseweb",
    "contabo",
    "scaleway",
)

# Snapshot of plausible-currency floors. Recalibrate as browsers age.
DEFAULT_MIN_BROWSER_VERSIONS = {
    "chrome": 90,
    "firefox": 85,
    "safari": 14,
}


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(v.strip() for v in value.split(",") if v.strip())


def _as_list(value: Any) -> Tuple[str, ...]:
    """YAML list or comma separated string."""
    if isinstance(value, str):
        return _split_csv(value)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class DetectionConfig:
    """Static configuration for fingerprinting and network risk detection."""

    # External reputation services; a missing key disables the detector
    proxycheck_api_key: Optional[str] = None
    ipapi_api_key: Optional[str] = None

    # Per external call timeout (seconds)
    request_timeout: float = 5.0

    reverse_dns_enabled: bool = True
    tor_exit_list_path: Optional[str] = None

    # GeoIP databases (None = resolver defaults)
    geoip_city_db: Optional[str] = None
    geoip_asn_db: Optional[str] = None
    geoip_enabled: bool = True

    high_risk_countries: Tuple[str, ...] = DEFAULT_HIGH_RISK_COUNTRIES
    bot_patterns: Tuple[str, ...] = DEFAULT_BOT_PATTERNS
    vpn_hostname_keywords: Tuple[str, ...] = DEFAULT_VPN_HOSTNAME_KEYWORDS
    hosting_keywords: Tuple[str, ...] = DEFAULT_HOSTING_KEYWORDS
    min_browser_versions: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_MIN_BROWSER_VERSIONS)
    )

    # Score assigned when VPN/proxy aggregation fails outright
    fallback_risk_score: int = 10

    @classmethod
    def from_env(cls) -> "DetectionConfig":
        """Load from environment variables."""
        kwargs: Dict[str, Any] = {
            "proxycheck_api_key": os.environ.get("PROXYCHECK_API_KEY") or None,
            "ipapi_api_key": os.environ.get("IPAPI_API_KEY") or None,
            "request_timeout": float(os.environ.get("DEVICETRUST_REQUEST_TIMEOUT", "5")),
            "reverse_dns_enabled": os.environ.get("DEVICETRUST_REVERSE_DNS", "true").lower() == "true",
            "tor_exit_list_path": os.environ.get("DEVICETRUST_TOR_EXIT_LIST") or None,
            "geoip_city_db": os.environ.get("GEOIP_DB_PATH") or None,
            "geoip_asn_db": os.environ.get("GEOIP_ASN_DB_PATH") or None,
            "geoip_enabled": os.environ.get("GEOIP_ENABLED", "true").lower() == "true",
        }
        countries = os.environ.get("DEVICETRUST_HIGH_RISK_COUNTRIES")
        if countries:
            kwargs["high_risk_countries"] = tuple(c.upper() for c in _split_csv(countries))
        return cls(**kwargs)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "DetectionConfig":
        """
        Load configuration from the ``fingerprint`` section of a YAML file,
        layered over the environment.

        Args:
            config_path: Path to YAML config file. When omitted the default
                locations are searched.

        Returns:
            DetectionConfig (environment-only if no file is found)
        """
        base = cls.from_env()

        if config_path is None:
            default_paths = [
                Path("devicetrust.yaml"),
                Path("config/devicetrust.yaml"),
                Path.home() / ".devicetrust" / "config.yaml",
            ]
            for path in default_paths:
                if path.exists():
                    config_path = str(path)
                    break

        if not config_path or not Path(config_path).exists():
            return base

        try:
            with open(config_path) as f:
                full_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read config {config_path}: {e}")
            return base

        section = full_config.get("fingerprint", {}) or {}
        return base.merged(section)

    def merged(self, overrides: Dict[str, Any]) -> "DetectionConfig":
        """Return a copy with known keys from ``overrides`` applied."""
        known = {f.name for f in fields(self)}
        updates: Dict[str, Any] = {}

        for key, value in overrides.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            if value is None:
                continue
            if key == "high_risk_countries":
                value = tuple(c.upper() for c in _as_list(value))
            elif key == "bot_patterns":
                # A single regex may itself contain commas
                value = (value,) if isinstance(value, str) else tuple(str(v) for v in value)
            elif key in ("vpn_hostname_keywords", "hosting_keywords"):
                value = tuple(v.lower() for v in _as_list(value))
            elif key == "min_browser_versions":
                value = {str(k).lower(): int(v) for k, v in value.items()}
            updates[key] = value

        return replace(self, **updates)
