#!/usr/bin/env python3
"""
Fingerprint data model.

A DeviceFingerprint is derived fresh for every request and has no identity
beyond it. Callers that link devices to accounts persist
``fingerprint_hash`` themselves.
"""

import hashlib
import json
import time
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..enrichment.signals import VpnProxyAssessment
from ..utils.geoip import GeoResult


class Severity(Enum):
    """Risk tiers, evaluated high to low."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_score(cls, score: int) -> "Severity":
        if score >= 80:
            return cls.CRITICAL
        if score >= 50:
            return cls.HIGH
        if score >= 25:
            return cls.MEDIUM
        return cls.LOW


@dataclass
class ClientTelemetry:
    """
    Optional values reported by client-side script. Every field may be absent.
    """
    canvas: Optional[str] = None
    webgl: Optional[str] = None
    audio: Optional[str] = None
    screen_resolution: Optional[str] = None
    color_depth: Optional[int] = None
    pixel_ratio: Optional[float] = None
    hardware_concurrency: Optional[int] = None
    device_memory: Optional[float] = None
    plugins: List[str] = field(default_factory=list)
    mime_types: List[str] = field(default_factory=list)
    mouse_movements: Optional[List[Any]] = None
    keyboard_pattern: Optional[Any] = None
    scroll_behavior: Optional[Any] = None
    session_id: Optional[str] = None

    # camelCase keys as sent by browsers
    _ALIASES = {
        'screenResolution': 'screen_resolution',
        'colorDepth': 'color_depth',
        'pixelRatio': 'pixel_ratio',
        'hardwareConcurrency': 'hardware_concurrency',
        'deviceMemory': 'device_memory',
        'mimeTypes': 'mime_types',
        'mouseMovements': 'mouse_movements',
        'keyboardPattern': 'keyboard_pattern',
        'scrollBehavior': 'scroll_behavior',
        'sessionId': 'session_id',
    }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["ClientTelemetry"]:
        """Build from a client payload; unknown keys are dropped. None/empty -> None."""
        if not data:
            return None
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        for list_field in ('plugins', 'mime_types'):
            if list_field in kwargs and not isinstance(kwargs[list_field], list):
                kwargs[list_field] = [str(kwargs[list_field])]
        return cls(**kwargs)

    def stable_components(self) -> Dict[str, Any]:
        """Device-describing values; behavioural and session data excluded."""
        return {
            'canvas': self.canvas,
            'webgl': self.webgl,
            'audio': self.audio,
            'screen_resolution': self.screen_resolution,
            'color_depth': self.color_depth,
            'pixel_ratio': self.pixel_ratio,
            'hardware_concurrency': self.hardware_concurrency,
            'device_memory': self.device_memory,
            'plugins': sorted(str(p) for p in self.plugins),
            'mime_types': sorted(str(m) for m in self.mime_types),
        }

    def compute_hash(self) -> str:
        """SHA-256 over the present stable components, or "" when none are present."""
        present = {k: v for k, v in self.stable_components().items() if v not in (None, [])}
        if not present:
            return ""
        payload = json.dumps(present, sort_keys=True, default=str)
        return hashlib.sha256(payload.encode()).hexdigest()


@dataclass
class RiskAssessment:
    """Additive risk score with the factors that produced it."""
    score: int = 0
    factors: List[str] = field(default_factory=list)
    severity: Severity = Severity.LOW

    def add(self, points: int, factor: str) -> None:
        self.score += points
        self.factors.append(factor)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'factors': self.factors,
            'severity': self.severity.value,
        }


@dataclass
class NetworkInfo:
    """Resolved network origin of a request."""
    ip: str = "unknown"
    geolocation: Optional[GeoResult] = None
    vpn_detection: VpnProxyAssessment = field(default_factory=VpnProxyAssessment)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ip': self.ip,
            'geolocation': self.geolocation.to_dict() if self.geolocation else None,
            'vpn_detection': self.vpn_detection.to_dict(),
        }


@dataclass
class DeviceFingerprint:
    """
    Device identity and risk for a single request.

    ``fingerprint_hash`` is the flow-stable identity; ``extended_hash`` is
    more discriminating but may differ between login, OAuth and
    registration requests from the same browser.
    """
    fingerprint_hash: str
    extended_hash: str
    network_info: NetworkInfo
    risk_assessment: RiskAssessment

    # Ordered inputs to fingerprint_hash
    components: List[str] = field(default_factory=list)
    user_agent: Dict[str, str] = field(default_factory=dict)

    telemetry: Optional[ClientTelemetry] = None
    telemetry_hash: str = ""

    created_at: float = field(default_factory=time.time)

    @property
    def hash_preview(self) -> str:
        """Non-reversible prefix for logs."""
        return self.fingerprint_hash[:8]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage/display"""
        return {
            'fingerprint_hash': self.fingerprint_hash,
            'extended_hash': self.extended_hash,
            'telemetry_hash': self.telemetry_hash or None,
            'network': self.network_info.to_dict(),
            'risk': self.risk_assessment.to_dict(),
            'user_agent': self.user_agent,
            'session_id': self.telemetry.session_id if self.telemetry else None,
            'created_at': datetime.fromtimestamp(self.created_at, tz=timezone.utc).isoformat(),
        }

    def to_log_entry(self) -> Dict[str, Any]:
        """Generate compact log entry"""
        return {
            'fingerprint': self.hash_preview,
            'risk_score': self.risk_assessment.score,
            'severity': self.risk_assessment.severity.value,
            'factors': len(self.risk_assessment.factors),
        }
