#!/usr/bin/env python3
"""
HTTP Header Fingerprint Extractor

Derives device identity components from request headers:
- Flow-stable basic component set (identity hash)
- Extended component set (secondary correlation)
- User-Agent parsing (browser, major version, OS, device class)
- Automation and spoofing heuristics

The basic set deliberately omits Referer, Origin, Sec-Fetch-* and cache
headers. Those differ between a top-level navigation (OAuth redirect) and
an XHR (password login) from the same browser.
"""

import hashlib
import re
from typing import Dict, List, Mapping, Optional, Pattern, Sequence

from ..request import RequestContext

HASH_DELIMITER = "|"

EXTENDED_HEADERS = (
    "upgrade-insecure-requests",
    "connection",
    "host",
    "sec-ch-ua-arch",
    "sec-ch-ua-bitness",
    "sec-ch-ua-model",
    "dnt",
)

# Real browsers always send at least two of these
BROWSER_BASELINE_HEADERS = ("accept", "accept-language", "accept-encoding")

# Order matters: Edge and Opera also carry "Chrome/"
BROWSER_VERSION_PATTERNS = (
    ("edge", re.compile(r"Edg(?:e|A|iOS)?/(\d+)")),
    ("opera", re.compile(r"OPR/(\d+)")),
    ("chrome", re.compile(r"(?:Chrome|CriOS)/(\d+)")),
    ("firefox", re.compile(r"(?:Firefox|FxiOS)/(\d+)")),
    ("safari", re.compile(r"Version/(\d+)[\d.]*(?: Mobile/\S+)? Safari/")),
)

MOBILE_UA_PATTERN = re.compile(r"Mobi|iPhone|iPod|Android.+Mobile|Windows Phone", re.I)
TABLET_UA_PATTERN = re.compile(r"iPad|Tablet|Android(?!.*Mobile)", re.I)


class HTTPFingerprintExtractor:
    """
    Extracts identity components and heuristics from HTTP headers.
    """

    def __init__(
        self,
        bot_patterns: Sequence[str] = (),
        min_browser_versions: Optional[Mapping[str, int]] = None,
    ):
        self.bot_patterns: List[Pattern] = [re.compile(p, re.I) for p in bot_patterns]
        self.min_browser_versions = dict(min_browser_versions or {})

    # ------------------------------------------------------------------
    # Component extraction
    # ------------------------------------------------------------------

    @staticmethod
    def primary_language(accept_language: str) -> str:
        """First language token, q-value included if the client sent one."""
        return accept_language.split(",")[0].strip()

    @staticmethod
    def encoding_flag(accept_encoding: str) -> str:
        return "gzip" if "gzip" in accept_encoding.lower() else "none"

    @staticmethod
    def platform_token(request: RequestContext, parsed_ua: Mapping[str, str]) -> str:
        hint = request.header("sec-ch-ua-platform").strip().strip('"')
        return hint or parsed_ua.get("os", "")

    @staticmethod
    def mobile_hint(request: RequestContext) -> str:
        return request.header("sec-ch-ua-mobile").strip() or "?0"

    def basic_components(
        self, request: RequestContext, ip: str, parsed_ua: Mapping[str, str]
    ) -> List[str]:
        """Ordered inputs to the flow-stable identity hash."""
        return [
            ip,
            request.header("user-agent"),
            self.primary_language(request.header("accept-language")),
            self.encoding_flag(request.header("accept-encoding")),
            self.platform_token(request, parsed_ua),
            self.mobile_hint(request),
        ]

    def extended_components(
        self, request: RequestContext, basic: Sequence[str]
    ) -> List[str]:
        return list(basic) + [request.header(h) for h in EXTENDED_HEADERS]

    @staticmethod
    def hash_components(components: Sequence[str]) -> str:
        """SHA-256 hex digest of the delimited components."""
        return hashlib.sha256(HASH_DELIMITER.join(components).encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------
    # User-Agent parsing
    # ------------------------------------------------------------------

    def parse_user_agent(self, ua: str) -> Dict[str, str]:
        """Parse User-Agent string into components"""
        result = {
            'raw': ua,
            'browser': '',
            'version': '',
            'os': '',
            'device': '',
        }
        if not ua:
            return result

        for browser, pattern in BROWSER_VERSION_PATTERNS:
            match = pattern.search(ua)
            if match:
                result['browser'] = browser
                result['version'] = match.group(1)
                break
        else:
            lowered = ua.lower()
            if 'curl/' in lowered:
                result['browser'] = 'curl'
            elif 'python' in lowered:
                result['browser'] = 'python'

        # Android UAs contain "Linux"; iOS UAs contain "Mac OS X"
        if 'Windows' in ua:
            result['os'] = 'windows'
        elif 'Android' in ua:
            result['os'] = 'android'
        elif 'iPhone' in ua or 'iPad' in ua or 'iPod' in ua:
            result['os'] = 'ios'
        elif 'Mac OS X' in ua or 'Macintosh' in ua:
            result['os'] = 'macos'
        elif 'CrOS' in ua:
            result['os'] = 'chromeos'
        elif 'Linux' in ua:
            result['os'] = 'linux'

        if TABLET_UA_PATTERN.search(ua):
            result['device'] = 'tablet'
        elif MOBILE_UA_PATTERN.search(ua):
            result['device'] = 'mobile'
        else:
            result['device'] = 'desktop'

        return result

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    def matches_bot_pattern(self, ua: str) -> bool:
        return any(p.search(ua) for p in self.bot_patterns)

    def missing_baseline_headers(self, request: RequestContext) -> List[str]:
        return [h for h in BROWSER_BASELINE_HEADERS if not request.has_header(h)]

    def is_bot_like(self, request: RequestContext) -> bool:
        """
        Automation UA, or at least two of Accept / Accept-Language /
        Accept-Encoding absent.
        """
        if self.matches_bot_pattern(request.header("user-agent")):
            return True
        return len(self.missing_baseline_headers(request)) >= 2

    def suspicious_user_agent_reasons(self, parsed_ua: Mapping[str, str]) -> List[str]:
        """
        Internally inconsistent or implausibly old browser claims.
        """
        reasons = []
        browser = parsed_ua.get('browser', '')
        os_name = parsed_ua.get('os', '')
        device = parsed_ua.get('device', '')

        # Chrome on Windows never reports a mobile device class
        if browser == 'chrome' and os_name == 'windows' and device == 'mobile':
            reasons.append('chrome/windows/mobile combination')

        minimum = self.min_browser_versions.get(browser)
        version = parsed_ua.get('version', '')
        if minimum is not None and version.isdigit() and int(version) < minimum:
            reasons.append(f'{browser} {version} below {minimum}')

        return reasons

    def is_suspicious_user_agent(self, parsed_ua: Mapping[str, str]) -> bool:
        return bool(self.suspicious_user_agent_reasons(parsed_ua))

    @staticmethod
    def lacks_client_hints_and_mobile(request: RequestContext) -> bool:
        """No Sec-CH-UA header and nothing mobile in the User-Agent."""
        if request.has_header("sec-ch-ua"):
            return False
        return not MOBILE_UA_PATTERN.search(request.header("user-agent"))
