"""
Route classification for the access middleware.

Paths are classified by static prefix lists. A prefix matches the path itself
or any sub-path, so ``/admin`` covers ``/admin/users`` but not
``/administrator``.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping, Optional

PROTECTED_ROUTES = (
    "/dashboard",
    "/profile",
    "/projects",
    "/events",
    "/messages",
    "/directory",
    "/courses",
    "/admin",
)
AUTH_ROUTES = ("/login", "/register", "/forgot-password")
ADMIN_ROUTES = ("/admin",)


class RouteClass(str, Enum):
    PUBLIC = "public"
    AUTH_ONLY = "auth_only"
    PROTECTED = "protected"
    ADMIN = "admin"


def matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def _matches_any(path: str, prefixes: Iterable[str]) -> bool:
    return any(matches_prefix(path, prefix) for prefix in prefixes)


def classify(path: str) -> RouteClass:
    """Classify a request path; admin wins over protected."""
    if _matches_any(path, ADMIN_ROUTES):
        return RouteClass.ADMIN
    if _matches_any(path, PROTECTED_ROUTES):
        return RouteClass.PROTECTED
    if _matches_any(path, AUTH_ROUTES):
        return RouteClass.AUTH_ONLY
    return RouteClass.PUBLIC


def client_ip(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    """Best-effort client address behind proxies."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = headers.get(header)
        if value:
            return value.strip()
    return peer or "unknown"
