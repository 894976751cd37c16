#!/usr/bin/env python3
"""
Hosting organisation heuristic.

Local and synchronous: matches the network operator name from the GeoIP ASN
database against well-known cloud and hosting providers.
"""

from typing import Optional, Sequence

from ..signals import NetworkSignal


class HostingOrgDetector:
    """Flags hosting when the ASN organisation names a cloud/hosting company."""

    name = "hosting_org"

    def __init__(self, keywords: Sequence[str]):
        self.keywords = tuple(k.lower() for k in keywords)

    def match(self, organization: str) -> Optional[str]:
        lowered = (organization or "").lower()
        if not lowered:
            return None
        for keyword in self.keywords:
            if keyword in lowered:
                return keyword
        return None

    def detect(self, organization: str) -> Optional[NetworkSignal]:
        """
        Args:
            organization: ASN organisation string, may be empty

        Returns:
            A hosting signal naming the organisation, or None if no match
        """
        if self.match(organization) is None:
            return None
        return NetworkSignal(source=self.name, is_hosting=True, provider=organization)
