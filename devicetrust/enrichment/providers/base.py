#!/usr/bin/env python3
"""
Base Provider - Abstract base class for network reputation detectors.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..signals import NetworkSignal
from ...utils.ipaddr import is_private_ip, is_valid_ip

logger = logging.getLogger("devicetrust.enrichment")


@dataclass
class ProviderResult:
    """
    Standardized result from a detector.

    ``signal`` is None whenever the detector could not reach a verdict.
    """
    provider: str
    ip: str
    success: bool
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    )

    signal: Optional[NetworkSignal] = None

    # Metadata
    isp: Optional[str] = None
    country: Optional[str] = None

    # Raw data from provider
    raw: Dict[str, Any] = field(default_factory=dict)

    # Error info if failed
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting None values"""
        signal = None
        if self.signal is not None:
            signal = {
                'is_vpn': self.signal.is_vpn,
                'is_proxy': self.signal.is_proxy,
                'is_tor': self.signal.is_tor,
                'is_hosting': self.signal.is_hosting,
                'score': self.signal.score,
            }
        return {k: v for k, v in {
            'provider': self.provider,
            'ip': self.ip,
            'success': self.success,
            'timestamp': self.timestamp,
            'signal': signal,
            'isp': self.isp,
            'country': self.country,
            'error': self.error,
        }.items() if v is not None}


class BaseProvider(ABC):
    """
    Abstract base class for network detectors.
    Subclasses must implement the lookup method and never raise from it.
    """

    # Override in subclass
    name: str = "base"
    requires_api_key: bool = False

    def __init__(self, api_key: Optional[str] = None, timeout: float = 5.0):
        """
        Initialize the provider.

        Args:
            api_key: API key for the provider
            timeout: Seconds allowed for one lookup
        """
        self.api_key = api_key
        self.timeout = timeout
        self._enabled = not (self.requires_api_key and not self.api_key)

    @property
    def enabled(self) -> bool:
        """Check if provider is enabled and configured"""
        return self._enabled

    def can_lookup(self, ip: str) -> bool:
        """Only public, well-formed addresses are worth a lookup"""
        return is_valid_ip(ip) and not is_private_ip(ip)

    @abstractmethod
    async def lookup(self, ip: str) -> ProviderResult:
        """
        Look up network reputation for an IP address.

        Args:
            ip: IPv4 or IPv6 address to look up

        Returns:
            ProviderResult carrying a signal, or an error result
        """
        pass

    def _signal_result(self, ip: str, signal: NetworkSignal, **kwargs) -> ProviderResult:
        """Create a successful result"""
        return ProviderResult(
            provider=self.name,
            ip=ip,
            success=True,
            signal=signal,
            **kwargs
        )

    def _error_result(self, ip: str, error: str) -> ProviderResult:
        """Create an error (no signal) result"""
        logger.debug(f"{self.name}: no signal for {ip}: {error}")
        return ProviderResult(
            provider=self.name,
            ip=ip,
            success=False,
            error=error
        )
