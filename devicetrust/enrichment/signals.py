#!/usr/bin/env python3
"""
Network Signals - per-detector verdicts and the rules for combining them.

Each detector produces at most one NetworkSignal. A detector that could not
reach a verdict (DNS failure, timeout, missing API key) produces ``None``,
which is "no signal", not "clean".

Merge rules:
    1. Flags are OR-ed across signals.
    2. Native scores are combined with max().
    3. A fixed increment is added for each flag set on the merged result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

VPN_INCREMENT = 30
PROXY_INCREMENT = 25
TOR_INCREMENT = 50
HOSTING_INCREMENT = 15


@dataclass(frozen=True)
class NetworkSignal:
    """Verdict from a single detector."""
    source: str
    is_vpn: bool = False
    is_proxy: bool = False
    is_tor: bool = False
    is_hosting: bool = False
    score: int = 0
    provider: Optional[str] = None


@dataclass
class VpnProxyAssessment:
    """Combined VPN/proxy/Tor/hosting verdict for an IP."""
    is_vpn: bool = False
    is_proxy: bool = False
    is_tor: bool = False
    is_hosting: bool = False
    risk_score: int = 0
    provider: Optional[str] = None
    sources: List[str] = field(default_factory=list)
    degraded: bool = False

    @classmethod
    def fallback(cls, score: int) -> "VpnProxyAssessment":
        """Moderate-risk result used when detection fails outright."""
        return cls(risk_score=score, degraded=True)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'is_vpn': self.is_vpn,
            'is_proxy': self.is_proxy,
            'is_tor': self.is_tor,
            'is_hosting': self.is_hosting,
            'risk_score': self.risk_score,
            'sources': self.sources,
        }
        if self.provider:
            result['provider'] = self.provider
        if self.degraded:
            result['degraded'] = True
        return result


def flag_increments(assessment: VpnProxyAssessment) -> int:
    """Sum of fixed increments for the flags set on ``assessment``."""
    total = 0
    if assessment.is_vpn:
        total += VPN_INCREMENT
    if assessment.is_proxy:
        total += PROXY_INCREMENT
    if assessment.is_tor:
        total += TOR_INCREMENT
    if assessment.is_hosting:
        total += HOSTING_INCREMENT
    return total


def fold_signals(signals: Iterable[Optional[NetworkSignal]]) -> VpnProxyAssessment:
    """OR the flags and max the native scores of every present signal."""
    merged = VpnProxyAssessment()

    for signal in signals:
        if signal is None:
            continue
        merged.sources.append(signal.source)
        merged.is_vpn = merged.is_vpn or signal.is_vpn
        merged.is_proxy = merged.is_proxy or signal.is_proxy
        merged.is_tor = merged.is_tor or signal.is_tor
        merged.is_hosting = merged.is_hosting or signal.is_hosting
        merged.risk_score = max(merged.risk_score, signal.score)
        # First named provider wins; ordering of detectors decides priority
        if signal.provider and not merged.provider:
            merged.provider = signal.provider

    return merged


def merge_signals(signals: Iterable[Optional[NetworkSignal]]) -> VpnProxyAssessment:
    """Fold signals, then add the fixed per-flag increments."""
    merged = fold_signals(signals)
    merged.risk_score += flag_increments(merged)
    return merged
