"""
devicetrust Device Fingerprinting Engine

Derives a flow-stable device identity from request headers and scores the
request's network origin and client characteristics for fraud risk.
"""

from .engine import FingerprintEngine
from .models import (
    ClientTelemetry,
    DeviceFingerprint,
    NetworkInfo,
    RiskAssessment,
    Severity,
)
from .request import RequestContext

__all__ = [
    'FingerprintEngine',
    'ClientTelemetry',
    'DeviceFingerprint',
    'NetworkInfo',
    'RiskAssessment',
    'RequestContext',
    'Severity',
]
