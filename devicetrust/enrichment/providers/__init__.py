"""
Network reputation detectors for devicetrust.
"""

from .base import BaseProvider, ProviderResult
from .hosting import HostingOrgDetector
from .ipapi import IPApiProvider
from .proxycheck import ProxyCheckProvider
from .reverse_dns import ReverseDNSProvider
from .tor import TorExitListProvider

__all__ = [
    'BaseProvider',
    'ProviderResult',
    'HostingOrgDetector',
    'IPApiProvider',
    'ProxyCheckProvider',
    'ReverseDNSProvider',
    'TorExitListProvider',
]
