"""
Authentication, authorization and abuse protection.

- passwords: bcrypt hashing, strength scoring and one-time tokens
- tokens: JWT session tokens
- auth_service: login with lockout, token to member resolution
- route_access: path classification for the access middleware
- rate_limit: fixed-window limiter and suspicious IP blocking
- headers: security / no-cache headers and request ids
"""
