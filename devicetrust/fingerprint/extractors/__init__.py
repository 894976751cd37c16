"""
Fingerprint Extractors

Header-derived identity components and heuristics.
"""

from .http import HTTPFingerprintExtractor

__all__ = ['HTTPFingerprintExtractor']
