#!/usr/bin/env python3
"""
Tor Exit List Provider - membership check against a local exit node list.

The list is a plain text file with one address per line (the format served
by https://check.torproject.org/torbulkexitlist). Lines starting with ``#``
are ignored. Refreshing the file is left to the deployment (cron, sidecar);
the list is read once when the provider is built.

Without a list this provider is disabled and ``is_tor`` is never set.
"""

import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from .base import BaseProvider, ProviderResult
from ..signals import NetworkSignal

logger = logging.getLogger("devicetrust.enrichment.tor")


def load_exit_list(path: str) -> FrozenSet[str]:
    """Read exit node addresses from ``path``; an unreadable file yields an empty set."""
    try:
        text = Path(path).read_text()
    except OSError as e:
        logger.warning(f"Failed to read Tor exit list {path}: {e}")
        return frozenset()

    nodes = frozenset(
        line.strip() for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    )
    logger.info(f"Loaded {len(nodes)} Tor exit nodes from {path}")
    return nodes


class TorExitListProvider(BaseProvider):
    """
    Flags Tor when the IP is a known exit node.
    """

    name = "tor_exit_list"
    requires_api_key = False

    def __init__(
        self,
        exit_nodes: Optional[Iterable[str]] = None,
        path: Optional[str] = None,
    ):
        super().__init__()
        if exit_nodes is not None:
            self.exit_nodes = frozenset(exit_nodes)
        elif path:
            self.exit_nodes = load_exit_list(path)
        else:
            self.exit_nodes = frozenset()
        self._enabled = bool(self.exit_nodes)

    async def lookup(self, ip: str) -> ProviderResult:
        if not self.enabled:
            return self._error_result(ip, "No exit list configured")

        if ip in self.exit_nodes:
            return self._signal_result(ip, NetworkSignal(source=self.name, is_tor=True))
        return self._signal_result(ip, NetworkSignal(source=self.name))
