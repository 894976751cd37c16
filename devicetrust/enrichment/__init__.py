"""
Network reputation enrichment for devicetrust.
Classifies client IPs as VPN, proxy, Tor or hosting from independent signals.
"""

from .engine import NetworkDetector
from .signals import NetworkSignal, VpnProxyAssessment, merge_signals

__all__ = ['NetworkDetector', 'NetworkSignal', 'VpnProxyAssessment', 'merge_signals']
