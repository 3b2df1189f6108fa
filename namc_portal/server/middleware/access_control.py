"""
Access control middleware.

Runs on every request, in order:

1. IP guard: blocked client addresses get a 403 ``IP_BLOCKED`` envelope.
2. Rate limiting for ``/api`` paths; a 429 on a rule with suspicious
   tracking counts a violation against the client address.
3. Session gating of page routes by the ``namc-auth-token`` cookie:
   auth-only pages bounce signed-in members to their dashboard, protected
   and admin pages redirect anonymous visitors to ``/login``.
4. Security headers, a request id and the rate limit headers on the way out.

API endpoints do their own authentication through dependencies; the cookie
gating here only covers page routes.
"""

from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import error_payload
from namc_portal.security.auth_service import AuthService, is_admin
from namc_portal.security.headers import apply_security_headers, generate_request_id
from namc_portal.security.rate_limit import RateLimiter, RateLimitResult
from namc_portal.security.route_access import RouteClass, classify, client_ip, matches_prefix
from namc_portal.server.core.constant import AUTH_COOKIE_NAME

logger = get_logger(__name__)

LOGIN_PATH = "/login"
MEMBER_HOME = "/dashboard"
ADMIN_HOME = "/admin/dashboard"


def _redirect(url: str, *, clear_cookie: bool = False) -> RedirectResponse:
    response = RedirectResponse(url, status_code=307)
    if clear_cookie:
        response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return response


class AccessControlMiddleware(BaseHTTPMiddleware):
    """IP guard, rate limiting, page gating and response hardening."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = generate_request_id()
        request.state.request_id = request_id
        path = request.url.path
        is_api = matches_prefix(path, "/api")
        ip = client_ip(request.headers, request.client.host if request.client else None)
        limiter: RateLimiter = request.app.state.rate_limiter
        limit_result: Optional[RateLimitResult] = None

        if await limiter.is_blocked(ip):
            logger.warning(f"Rejected request from blocked IP {ip}: {request.method} {path}")
            response = JSONResponse(
                status_code=403,
                content=error_payload("IP_BLOCKED", "Access denied", request_id=request_id),
            )
            return self._finish(response, request_id, is_api, None)

        if is_api:
            selected = limiter.rule_for_path(path)
            if selected is not None:
                rule, track_suspicious = selected
                limit_result = await limiter.check(ip, rule)
                if not limit_result.allowed:
                    logger.warning(f"Rate limit '{rule.name}' exceeded by {ip} on {path}")
                    if track_suspicious:
                        await limiter.record_violation(ip)
                    response = JSONResponse(
                        status_code=429,
                        content=error_payload(
                            "RATE_LIMITED",
                            "Too many requests. Please try again later.",
                            details={"reset_time": limit_result.reset_time_iso},
                            request_id=request_id,
                        ),
                    )
                    return self._finish(response, request_id, is_api, limit_result)

        route_class = classify(path)
        if route_class is not RouteClass.PUBLIC:
            gated = await self._gate(request, route_class, call_next)
            return self._finish(gated, request_id, is_api, limit_result)

        response = await call_next(request)
        return self._finish(response, request_id, is_api, limit_result)

    async def _gate(self, request: Request, route_class: RouteClass, call_next: Callable) -> Response:
        path = request.url.path
        token = request.cookies.get(AUTH_COOKIE_NAME)
        user = None
        if token:
            async with request.app.state.session_factory() as session:
                user = await AuthService(session).get_user_from_token(token)

        if route_class is RouteClass.AUTH_ONLY:
            if user is not None:
                return _redirect(ADMIN_HOME if is_admin(user) else MEMBER_HOME)
            response = await call_next(request)
            if token:
                response.delete_cookie(AUTH_COOKIE_NAME, path="/")
            return response

        if not token:
            return _redirect(f"{LOGIN_PATH}?{urlencode({'redirect': path})}")
        if user is None:
            return _redirect(LOGIN_PATH, clear_cookie=True)
        if route_class is RouteClass.ADMIN and not is_admin(user):
            logger.info(f"Non-admin user {user.id} redirected away from {path}")
            return _redirect(MEMBER_HOME)

        request.state.user = user
        return await call_next(request)

    @staticmethod
    def _finish(
        response: Response, request_id: str, is_api: bool, limit_result: Optional[RateLimitResult]
    ) -> Response:
        apply_security_headers(response.headers, no_cache=is_api)
        response.headers["X-Request-ID"] = request_id
        if limit_result is not None:
            for name, value in limit_result.headers().items():
                response.headers[name] = value
        return response
