#!/usr/bin/env python3
"""
devicetrust GeoIP Module

Best-effort IP geolocation using MaxMind GeoLite2 databases. A missing
database, an address not present in it, or a reader error all yield
``None`` rather than an exception.

Requires: geoip2
"""

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import geoip2.database
import geoip2.errors

from .ipaddr import is_private_ip, is_valid_ip

logger = logging.getLogger("devicetrust.geoip")


DEFAULT_CITY_DB = "/usr/share/GeoIP/GeoLite2-City.mmdb"
DEFAULT_ASN_DB = "/usr/share/GeoIP/GeoLite2-ASN.mmdb"


@dataclass
class GeoResult:
    """Result of a geolocation lookup."""

    country: Optional[str] = None
    country_code: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    asn: Optional[int] = None
    asn_org: Optional[str] = None

    @property
    def organization(self) -> str:
        """Network operator name, empty if unknown."""
        return self.asn_org or ""

    @property
    def is_empty(self) -> bool:
        return not any(v is not None for v in asdict(self).values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


class GeoIPResolver:
    """
    Resolves IP addresses to geolocation data using MaxMind GeoLite2 databases.
    """

    def __init__(
        self,
        city_db_path: Optional[str] = None,
        asn_db_path: Optional[str] = None,
        enabled: bool = True,
    ):
        self.enabled = enabled
        self._city_reader = None
        self._asn_reader = None

        if not self.enabled:
            logger.info("GeoIP disabled by configuration")
            return

        city_path = city_db_path or DEFAULT_CITY_DB
        self._city_reader = self._open(city_path, "city")

        asn_path = asn_db_path or DEFAULT_ASN_DB
        self._asn_reader = self._open(asn_path, "ASN")

        if not self._city_reader and not self._asn_reader:
            logger.info("No GeoIP databases available, geolocation disabled")
            self.enabled = False

    @staticmethod
    def _open(path: str, kind: str):
        if not os.path.exists(path):
            logger.info(f"GeoIP {kind} database not found at {path}")
            return None
        try:
            reader = geoip2.database.Reader(path)
            logger.info(f"GeoIP {kind} database loaded: {path}")
            return reader
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load GeoIP {kind} database: {e}")
            return None

    def lookup(self, ip: str) -> Optional[GeoResult]:
        """
        Look up geolocation data for an IP address.

        Args:
            ip: IPv4 or IPv6 address string.

        Returns:
            GeoResult with available fields populated, or None when nothing
            could be resolved.
        """
        if not self.enabled or not ip or not is_valid_ip(ip) or is_private_ip(ip):
            return None

        result = GeoResult()

        if self._city_reader:
            try:
                city = self._city_reader.city(ip)
                result.country = city.country.name
                result.country_code = city.country.iso_code
                result.city = city.city.name
                result.latitude = city.location.latitude
                result.longitude = city.location.longitude
                result.timezone = city.location.time_zone
            except geoip2.errors.AddressNotFoundError:
                pass
            except Exception as e:
                logger.debug(f"GeoIP city lookup failed for {ip}: {e}")

        if self._asn_reader:
            try:
                asn = self._asn_reader.asn(ip)
                result.asn = asn.autonomous_system_number
                result.asn_org = asn.autonomous_system_organization
            except geoip2.errors.AddressNotFoundError:
                pass
            except Exception as e:
                logger.debug(f"GeoIP ASN lookup failed for {ip}: {e}")

        return None if result.is_empty else result

    def close(self):
        """Close database readers."""
        if self._city_reader:
            self._city_reader.close()
        if self._asn_reader:
            self._asn_reader.close()
