"""Security and cache headers applied to every response."""

from __future__ import annotations

import secrets
import string
import time
from typing import MutableMapping

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "Content-Security-Policy": "; ".join(
        [
            "default-src 'self'",
            "script-src 'self'",
            "style-src 'self' 'unsafe-inline' fonts.googleapis.com",
            "font-src 'self' fonts.gstatic.com",
            "img-src 'self' data: blob: https:",
            "connect-src 'self'",
            "frame-ancestors 'none'",
            "base-uri 'self'",
            "form-action 'self'",
        ]
    ),
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": ", ".join(
        [
            "camera=()",
            "microphone=()",
            "geolocation=()",
            "payment=(self)",
            "usb=()",
            "magnetometer=()",
            "gyroscope=()",
            "accelerometer=()",
        ]
    ),
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

_ALPHABET = string.ascii_lowercase + string.digits


def generate_request_id() -> str:
    """``req_<epoch ms>_<9 random chars>``"""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def apply_security_headers(headers: MutableMapping[str, str], *, no_cache: bool = False) -> None:
    """Add the security headers, keeping any value a handler already set."""
    for name, value in SECURITY_HEADERS.items():
        if name not in headers:
            headers[name] = value
    if no_cache:
        for name, value in NO_CACHE_HEADERS.items():
            headers[name] = value
