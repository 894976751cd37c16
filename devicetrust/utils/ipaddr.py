#!/usr/bin/env python3
"""
Client IP resolution behind CDNs and reverse proxies.

Headers are consulted in trust order. CDN-injected headers cannot be set by
the origin-facing client, so they win; the socket address comes last
because behind a proxy it is the proxy's own address.
"""

import ipaddress
import re
from typing import Iterable, List, Mapping, Optional

# Lower-case header names, most trustworthy first
IP_HEADER_PRECEDENCE = (
    "cf-connecting-ip",     # Cloudflare
    "x-real-ip",            # nginx
    "x-forwarded-for",
    "x-client-ip",
    "x-forwarded",
    "forwarded-for",
    "forwarded",            # RFC 7239
)

_PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(n)
    for n in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "0.0.0.0/32",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)

_FORWARDED_FOR = re.compile(r'for\s*=\s*"?([^;,"]+)"?', re.I)


def is_valid_ip(value: str) -> bool:
    """Check that ``value`` is an IPv4 or IPv6 literal."""
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def is_private_ip(value: str) -> bool:
    """Check if IP is private, loopback or link-local. Invalid input counts as private."""
    try:
        addr = ipaddress.ip_address(value)
    except ValueError:
        return True

    # ::ffff:10.0.0.1 and friends
    if addr.version == 6 and addr.ipv4_mapped is not None:
        addr = addr.ipv4_mapped

    return any(addr.version == net.version and addr in net for net in _PRIVATE_NETWORKS)


def _clean_candidate(candidate: str) -> str:
    """Strip quotes, IPv6 brackets and ports from a header token."""
    candidate = candidate.strip().strip('"').strip()
    if not candidate:
        return ""

    if candidate.startswith("["):
        end = candidate.find("]")
        return candidate[1:end] if end > 0 else candidate[1:]

    # IPv4 with port; bare IPv6 has more than one colon
    if candidate.count(":") == 1:
        return candidate.split(":", 1)[0]

    return candidate


def split_header_candidates(header: str, value: str) -> List[str]:
    """Break an IP-bearing header value into cleaned candidate addresses."""
    if not value:
        return []
    if header == "forwarded":
        raw = _FORWARDED_FOR.findall(value)
    else:
        raw = value.split(",")
    return [c for c in (_clean_candidate(r) for r in raw) if c]


def first_public_ip(candidates: Iterable[str]) -> Optional[str]:
    """Return the first candidate that is a valid, public address."""
    for candidate in candidates:
        if is_valid_ip(candidate) and not is_private_ip(candidate):
            return candidate
    return None


def extract_real_ip(
    headers: Mapping[str, str],
    remote_addr: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> str:
    """
    Resolve the client's real IP address.

    Args:
        headers: Header map with lower-case keys
        remote_addr: Address of the TCP peer
        request_ip: IP as reported by the web framework

    Returns:
        First valid public address in precedence order, else the raw request
        IP, else ``"unknown"``.
    """
    for header in IP_HEADER_PRECEDENCE:
        found = first_public_ip(split_header_candidates(header, headers.get(header, "") or ""))
        if found:
            return found

    for fallback in (remote_addr, request_ip):
        found = first_public_ip(split_header_candidates("", fallback or ""))
        if found:
            return found

    return request_ip or remote_addr or "unknown"
