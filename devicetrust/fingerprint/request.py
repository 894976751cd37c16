#!/usr/bin/env python3
"""
Request adapter.

The engine only needs a header map with case-insensitive lookup and the
connection's remote address. RequestContext normalises whatever the web
layer hands over into that shape.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class RequestContext:
    """Minimal view of an inbound HTTP request."""

    # Lower-case header name -> value
    headers: Dict[str, str] = field(default_factory=dict)

    # TCP peer address
    remote_addr: Optional[str] = None

    # Address reported by the framework (may already honour proxy headers)
    ip: Optional[str] = None

    method: str = "GET"
    path: str = ""

    def __post_init__(self):
        self.headers = {
            str(k).lower(): "" if v is None else str(v)
            for k, v in (self.headers or {}).items()
        }

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup; missing headers read as ``default``."""
        return self.headers.get(name.lower(), default) or default

    def has_header(self, name: str) -> bool:
        return bool(self.headers.get(name.lower()))

    @classmethod
    def from_headers(
        cls,
        headers: Optional[Mapping[str, Any]],
        remote_addr: Optional[str] = None,
        ip: Optional[str] = None,
        method: str = "GET",
        path: str = "",
    ) -> "RequestContext":
        return cls(
            headers=dict(headers or {}),
            remote_addr=remote_addr,
            ip=ip,
            method=method,
            path=path,
        )

    @classmethod
    def from_aiohttp(cls, request) -> "RequestContext":
        """
        Build from an ``aiohttp.web.Request``.

        Repeated headers are joined with commas, as a proxy would.
        """
        headers: Dict[str, str] = {}
        for key, value in request.headers.items():
            key = key.lower()
            headers[key] = f"{headers[key]}, {value}" if key in headers else value

        peer = None
        if request.transport is not None:
            peername = request.transport.get_extra_info("peername")
            if isinstance(peername, (tuple, list)) and peername:
                peer = peername[0]

        return cls(
            headers=headers,
            remote_addr=peer,
            ip=request.remote,
            method=request.method,
            path=request.path,
        )


def as_request_context(request: Any) -> RequestContext:
    """Coerce a RequestContext, a plain header mapping, or an aiohttp request."""
    if isinstance(request, RequestContext):
        return request
    if request is None:
        return RequestContext()
    if isinstance(request, Mapping):
        return RequestContext.from_headers(request)
    if hasattr(request, "headers") and hasattr(request, "transport"):
        return RequestContext.from_aiohttp(request)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")
