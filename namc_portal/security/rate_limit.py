"""
Fixed-window rate limiting and suspicious IP tracking.

Counters live in a ``RateLimitStore``: an in-process dictionary store, or a
Redis store for deployments with several workers. The Redis store falls back
to its in-memory twin, per call, whenever Redis is unreachable, so a Redis
outage degrades limits to per-process instead of failing requests.

Window semantics: the first hit opens a window of ``window_seconds``; hits are
counted until the window's reset time passes. A hit at the limit is rejected
and does not increment the counter.
"""

from __future__ import annotations

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from namc_portal.core.logging_config import get_logger
from namc_portal.core.monitoring import log_security_event
from namc_portal.server.core.config import RateLimitConfig, Settings

from .route_access import matches_prefix

logger = get_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitRule:
    name: str
    max_requests: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    now: float

    @property
    def retry_after(self) -> int:
        return max(0, math.ceil(self.reset_at - self.now))

    @property
    def reset_time_iso(self) -> str:
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc).isoformat().replace("+00:00", "Z")

    def headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(math.ceil(self.reset_at))),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimitStore(ABC):
    """Storage backend for window counters, violation counters and IP blocks."""

    backend: str = "abstract"

    @abstractmethod
    async def hit(self, key: str, limit: int, window_seconds: int, now: float) -> Tuple[int, float, bool]:
        """Count one request against ``key``.

        Returns:
            ``(count, reset_at, allowed)`` after the hit
        """

    @abstractmethod
    async def record_violation(
        self, ip: str, threshold: int, quiet_seconds: int, block_seconds: int, now: float
    ) -> Tuple[int, bool]:
        """Count a rate limit violation for ``ip``.

        Returns:
            ``(violations, blocked)``; ``blocked`` is true once the count
            exceeds ``threshold``
        """

    @abstractmethod
    async def is_blocked(self, ip: str, now: float) -> bool:
        """Whether ``ip`` is currently blocked."""

    async def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend}

    async def close(self) -> None:
        return None


class InMemoryRateLimitStore(RateLimitStore):
    """
    Per-process store.

    Expired windows, violation counters and blocks are dropped when their key
    comes back, and by a sweep over every key at most once per
    ``sweep_interval`` seconds.
    """

    backend = "memory"

    def __init__(self, sweep_interval: float = 60.0) -> None:
        self.sweep_interval = sweep_interval
        self._windows: Dict[str, Tuple[int, float]] = {}
        # ip -> (count, expires_at)
        self._violations: Dict[str, Tuple[int, float]] = {}
        self._blocked: Dict[str, float] = {}
        self._next_sweep: Optional[float] = None

    def _sweep(self, now: float) -> None:
        if self._next_sweep is not None and now < self._next_sweep:
            return
        self._next_sweep = now + self.sweep_interval
        self._windows = {key: entry for key, entry in self._windows.items() if now <= entry[1]}
        self._violations = {ip: entry for ip, entry in self._violations.items() if now <= entry[1]}
        self._blocked = {ip: until for ip, until in self._blocked.items() if now < until}

    async def hit(self, key: str, limit: int, window_seconds: int, now: float) -> Tuple[int, float, bool]:
        self._sweep(now)
        entry = self._windows.get(key)
        if entry is None or now > entry[1]:
            reset_at = now + window_seconds
            self._windows[key] = (1, reset_at)
            return 1, reset_at, True
        count, reset_at = entry
        if count >= limit:
            return count, reset_at, False
        self._windows[key] = (count + 1, reset_at)
        return count + 1, reset_at, True

    async def record_violation(
        self, ip: str, threshold: int, quiet_seconds: int, block_seconds: int, now: float
    ) -> Tuple[int, bool]:
        self._sweep(now)
        count, expires_at = self._violations.get(ip, (0, now))
        if now > expires_at:
            count = 0
        count += 1
        self._violations[ip] = (count, now + quiet_seconds)
        if count > threshold:
            self._blocked[ip] = now + block_seconds
            return count, True
        return count, False

    async def is_blocked(self, ip: str, now: float) -> bool:
        until = self._blocked.get(ip)
        if until is None:
            return False
        if now >= until:
            del self._blocked[ip]
            return False
        return True

    async def describe(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "tracked_windows": len(self._windows),
            "tracked_ips": len(self._violations),
            "blocked_ips": len(self._blocked),
        }


# KEYS[1] = window hash; ARGV = now, window_seconds, limit
_HIT_SCRIPT = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local count = tonumber(redis.call('HGET', KEYS[1], 'count'))
local reset = tonumber(redis.call('HGET', KEYS[1], 'reset_at'))
if (not count) or (not reset) or now > reset then
  reset = now + window
  redis.call('HSET', KEYS[1], 'count', 1, 'reset_at', tostring(reset))
  redis.call('EXPIRE', KEYS[1], math.ceil(window) + 1)
  return {1, tostring(reset), 1}
end
if count >= limit then
  return {count, tostring(reset), 0}
end
count = redis.call('HINCRBY', KEYS[1], 'count', 1)
return {count, tostring(reset), 1}
"""


class RedisRateLimitStore(RateLimitStore):
    """Shared store on Redis, with per-call fallback to an in-memory store."""

    backend = "redis"

    def __init__(self, client: aioredis.Redis, fallback: Optional[InMemoryRateLimitStore] = None) -> None:
        self.client = client
        self.fallback = fallback or InMemoryRateLimitStore()
        self._hit_script = client.register_script(_HIT_SCRIPT)

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimitStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    def _degraded(self, operation: str, error: Exception) -> None:
        logger.warning(f"Redis unavailable during {operation}, using in-memory rate limit state: {error}")

    async def hit(self, key: str, limit: int, window_seconds: int, now: float) -> Tuple[int, float, bool]:
        try:
            count, reset_at, allowed = await self._hit_script(keys=[key], args=[now, window_seconds, limit])
            return int(count), float(reset_at), bool(int(allowed))
        except (RedisError, OSError) as e:
            self._degraded("hit", e)
            return await self.fallback.hit(key, limit, window_seconds, now)

    async def record_violation(
        self, ip: str, threshold: int, quiet_seconds: int, block_seconds: int, now: float
    ) -> Tuple[int, bool]:
        try:
            key = f"suspicious:{ip}"
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, quiet_seconds)
                count, _ = await pipe.execute()
            count = int(count)
            if count > threshold:
                await self.client.set(f"blocked:{ip}", "1", ex=block_seconds)
                return count, True
            return count, False
        except (RedisError, OSError) as e:
            self._degraded("record_violation", e)
            return await self.fallback.record_violation(ip, threshold, quiet_seconds, block_seconds, now)

    async def is_blocked(self, ip: str, now: float) -> bool:
        try:
            return bool(await self.client.exists(f"blocked:{ip}"))
        except (RedisError, OSError) as e:
            self._degraded("is_blocked", e)
            return await self.fallback.is_blocked(ip, now)

    async def describe(self) -> Dict[str, Any]:
        try:
            await self.client.ping()
            info = await self.client.info("server")
            return {"backend": self.backend, "connected": True, "redis_version": info.get("redis_version")}
        except (RedisError, OSError) as e:
            details = await self.fallback.describe()
            return {"backend": self.backend, "connected": False, "error": str(e), "fallback": details}

    async def close(self) -> None:
        await self.client.aclose()


class RateLimiter:
    """Applies the strict / moderate / relaxed rules and the IP guard."""

    def __init__(self, store: RateLimitStore, config: RateLimitConfig, clock: Clock = time.time) -> None:
        self.store = store
        self.config = config
        self.clock = clock
        self.strict = RateLimitRule("strict", config.strict_max, config.window_seconds)
        self.moderate = RateLimitRule("moderate", config.moderate_max, config.window_seconds)
        self.relaxed = RateLimitRule("relaxed", config.relaxed_max, config.window_seconds)

    def rule_for_path(self, path: str) -> Optional[Tuple[RateLimitRule, bool]]:
        """Pick the rule for an API path.

        Returns:
            ``(rule, track_suspicious)`` or ``None`` for non-API paths
        """
        if matches_prefix(path, "/api/v1/auth/login"):
            return self.strict, True
        if matches_prefix(path, "/api/v1/auth"):
            return self.moderate, False
        if matches_prefix(path, "/api/v1/admin"):
            return self.strict, True
        if matches_prefix(path, "/api"):
            return self.moderate, False
        return None

    async def check(self, identifier: str, rule: RateLimitRule) -> RateLimitResult:
        now = self.clock()
        count, reset_at, allowed = await self.store.hit(
            f"rate_limit:{rule.name}:{identifier}", rule.max_requests, rule.window_seconds, now
        )
        return RateLimitResult(
            allowed=allowed,
            limit=rule.max_requests,
            remaining=max(0, rule.max_requests - count) if allowed else 0,
            reset_at=reset_at,
            now=now,
        )

    async def check_email(self, recipient: str) -> RateLimitResult:
        rule = RateLimitRule("email", self.config.email_max_per_hour, 3600)
        return await self.check(recipient.lower(), rule)

    async def record_violation(self, ip: str) -> bool:
        """Count a 429 against ``ip``; returns True when the IP is now blocked."""
        count, blocked = await self.store.record_violation(
            ip,
            self.config.suspicious_threshold,
            self.config.suspicious_window_seconds,
            self.config.block_seconds,
            self.clock(),
        )
        log_security_event("rate_limit_violation", ip, {"violations": count})
        if blocked:
            logger.warning(f"Blocking IP {ip} after {count} rate limit violations")
            log_security_event("ip_blocked", ip, {"violations": count})
        return blocked

    async def is_blocked(self, ip: str) -> bool:
        return await self.store.is_blocked(ip, self.clock())


def build_rate_limiter(app_settings: Settings) -> RateLimiter:
    """Create the limiter for the configured backend."""
    redis_url = app_settings.redis.url
    if redis_url:
        logger.info("Rate limiting backed by Redis")
        store: RateLimitStore = RedisRateLimitStore.from_url(redis_url)
    else:
        logger.info("REDIS_URL not set, rate limiting uses in-memory state")
        store = InMemoryRateLimitStore()
    return RateLimiter(store, app_settings.rate_limit)
