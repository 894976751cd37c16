"""
Network helpers: client IP resolution and geolocation.
"""

from .geoip import GeoIPResolver, GeoResult
from .ipaddr import extract_real_ip, is_private_ip, is_valid_ip

__all__ = [
    'GeoIPResolver',
    'GeoResult',
    'extract_real_ip',
    'is_private_ip',
    'is_valid_ip',
]
