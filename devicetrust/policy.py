#!/usr/bin/env python3
"""
Fraud decision policy.

Turns a DeviceFingerprint's risk score into the three decisions used by
registration and OAuth gating: block, flag for review, or require extra
verification.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from .fingerprint.models import DeviceFingerprint, Severity

logger = logging.getLogger("devicetrust.policy")


@dataclass(frozen=True)
class FraudDecision:
    """Outcome of applying a policy to one fingerprint."""
    score: int
    severity: Severity
    block: bool
    flag: bool
    require_verification: bool

    @property
    def allowed(self) -> bool:
        return not self.block

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'severity': self.severity.value,
            'block': self.block,
            'flag': self.flag,
            'require_verification': self.require_verification,
        }


@dataclass(frozen=True)
class FraudDecisionPolicy:
    """
    Inclusive score thresholds. ``block_enabled=False`` turns blocking into
    flag-only mode.
    """
    block: int = 90
    flag: int = 75
    verify: int = 50
    block_enabled: bool = True

    def __post_init__(self):
        if not (self.verify <= self.flag <= self.block):
            raise ValueError(
                f"Thresholds must satisfy verify <= flag <= block "
                f"(got verify={self.verify}, flag={self.flag}, block={self.block})"
            )

    def decide(self, score: int) -> FraudDecision:
        return FraudDecision(
            score=score,
            severity=Severity.from_score(score),
            block=self.block_enabled and score >= self.block,
            flag=score >= self.flag,
            require_verification=score >= self.verify,
        )

    def evaluate(self, fingerprint: DeviceFingerprint) -> FraudDecision:
        decision = self.decide(fingerprint.risk_assessment.score)
        if decision.block:
            logger.warning(
                f"Blocking device {fingerprint.hash_preview}...: "
                f"score={decision.score} factors={fingerprint.risk_assessment.factors}"
            )
        elif decision.flag:
            logger.info(f"Flagging device {fingerprint.hash_preview}... for review: score={decision.score}")
        return decision
