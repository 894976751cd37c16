"""
devicetrust - device fingerprinting and network risk scoring for account flows.
"""

from .config import DetectionConfig
from .enrichment import NetworkDetector, VpnProxyAssessment
from .fingerprint import (
    DeviceFingerprint,
    FingerprintEngine,
    RequestContext,
    RiskAssessment,
    Severity,
)
from .policy import FraudDecision, FraudDecisionPolicy

__all__ = [
    'DetectionConfig',
    'DeviceFingerprint',
    'FingerprintEngine',
    'FraudDecision',
    'FraudDecisionPolicy',
    'NetworkDetector',
    'RequestContext',
    'RiskAssessment',
    'Severity',
    'VpnProxyAssessment',
]
__version__ = '1.0.0'
