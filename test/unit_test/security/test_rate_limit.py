"""
Unit tests for the fixed-window rate limiter.

A controllable clock drives the windows. The Redis store runs against
fakeredis (with its Lua support) and against a client whose calls fail.
"""

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from namc_portal.security.rate_limit import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitRule,
    RedisRateLimitStore,
    build_rate_limiter,
)
from namc_portal.server.core.config import RateLimitConfig, settings


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    config = RateLimitConfig(
        window_seconds=60,
        strict_max=3,
        moderate_max=5,
        suspicious_threshold=2,
        suspicious_window_seconds=600,
        block_seconds=300,
        email_max_per_hour=2,
    )
    return RateLimiter(InMemoryRateLimitStore(), config, clock=clock)


class TestWindows:
    async def test_allows_up_to_limit(self, limiter):
        results = [await limiter.check("1.2.3.4", limiter.strict) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert results[-1].headers()["Retry-After"] == "60"

    async def test_window_resets(self, limiter, clock):
        for _ in range(3):
            await limiter.check("1.2.3.4", limiter.strict)
        clock.advance(61)

        result = await limiter.check("1.2.3.4", limiter.strict)

        assert result.allowed
        assert result.remaining == 2

    async def test_rejected_hits_do_not_extend_window(self, limiter, clock):
        first = await limiter.check("1.2.3.4", limiter.strict)
        for _ in range(5):
            clock.advance(5)
            await limiter.check("1.2.3.4", limiter.strict)

        last = await limiter.check("1.2.3.4", limiter.strict)

        assert last.reset_at == first.reset_at
        assert last.retry_after == 35

    async def test_rules_and_clients_are_independent(self, limiter):
        for _ in range(3):
            await limiter.check("1.2.3.4", limiter.strict)

        assert (await limiter.check("1.2.3.4", limiter.moderate)).allowed
        assert (await limiter.check("5.6.7.8", limiter.strict)).allowed

    async def test_reset_time_iso(self, limiter):
        result = await limiter.check("1.2.3.4", limiter.strict)

        assert result.reset_time_iso == "2023-11-14T22:14:20Z"

    async def test_email_limit_is_case_insensitive(self, limiter):
        await limiter.check_email("Maria@Example.com")
        await limiter.check_email("maria@example.com")

        assert not (await limiter.check_email("MARIA@EXAMPLE.COM")).allowed


class TestRuleSelection:
    @pytest.mark.parametrize(
        "path,rule,tracked",
        [
            ("/api/v1/auth/login", "strict", True),
            ("/api/v1/auth/register", "moderate", False),
            ("/api/v1/admin/contractors", "strict", True),
            ("/api/v1/members", "moderate", False),
        ],
    )
    def test_rule_for_path(self, limiter, path, rule, tracked):
        selected, track = limiter.rule_for_path(path)

        assert selected.name == rule
        assert track is tracked

    def test_pages_have_no_rule(self, limiter):
        assert limiter.rule_for_path("/dashboard") is None


class TestSuspiciousActivity:
    async def test_blocks_after_threshold(self, limiter, clock):
        assert not await limiter.record_violation("6.6.6.6")
        assert not await limiter.record_violation("6.6.6.6")
        assert await limiter.record_violation("6.6.6.6")

        assert await limiter.is_blocked("6.6.6.6")
        assert not await limiter.is_blocked("7.7.7.7")

    async def test_block_expires(self, limiter, clock):
        for _ in range(3):
            await limiter.record_violation("6.6.6.6")
        clock.advance(301)

        assert not await limiter.is_blocked("6.6.6.6")

    async def test_quiet_period_resets_count(self, limiter, clock):
        await limiter.record_violation("6.6.6.6")
        await limiter.record_violation("6.6.6.6")
        clock.advance(601)

        assert not await limiter.record_violation("6.6.6.6")


class TestMemoryStoreSweep:
    async def test_expired_entries_are_dropped(self, clock):
        store = InMemoryRateLimitStore()
        config = RateLimitConfig(
            window_seconds=60, suspicious_threshold=0, suspicious_window_seconds=120, block_seconds=30
        )
        limiter = RateLimiter(store, config, clock=clock)
        for ip in ("1.1.1.1", "2.2.2.2", "3.3.3.3"):
            await limiter.check(ip, limiter.strict)
        await limiter.check_email("maria@example.com")
        await limiter.record_violation("6.6.6.6")
        clock.advance(3601)

        await limiter.check("9.9.9.9", limiter.strict)

        assert await store.describe() == {
            "backend": "memory",
            "tracked_windows": 1,
            "tracked_ips": 0,
            "blocked_ips": 0,
        }

    async def test_sweeps_at_most_once_per_interval(self, clock):
        store = InMemoryRateLimitStore(sweep_interval=300)
        await store.hit("a", 5, 10, clock())
        clock.advance(20)
        await store.hit("b", 5, 10, clock())

        assert (await store.describe())["tracked_windows"] == 2

        clock.advance(300)
        await store.hit("c", 5, 10, clock())

        assert (await store.describe())["tracked_windows"] == 1


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


class TestRedisStore:
    async def test_rejects_at_limit_without_counting(self, redis_client, clock):
        limiter = RateLimiter(
            RedisRateLimitStore(redis_client), RateLimitConfig(window_seconds=60, strict_max=2), clock=clock
        )

        results = [await limiter.check("1.2.3.4", limiter.strict) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, False, False]
        assert [r.remaining for r in results] == [1, 0, 0, 0]
        assert results[-1].reset_at == clock.now + 60
        assert await redis_client.hget("rate_limit:strict:1.2.3.4", "count") == "2"
        assert 0 < await redis_client.ttl("rate_limit:strict:1.2.3.4") <= 61

    async def test_window_resets_after_reset_time(self, redis_client, clock):
        limiter = RateLimiter(
            RedisRateLimitStore(redis_client), RateLimitConfig(window_seconds=60, strict_max=2), clock=clock
        )
        for _ in range(3):
            await limiter.check("1.2.3.4", limiter.strict)
        clock.advance(61)

        result = await limiter.check("1.2.3.4", limiter.strict)

        assert result.allowed
        assert result.remaining == 1
        assert result.reset_at == clock.now + 60
        assert await redis_client.hget("rate_limit:strict:1.2.3.4", "count") == "1"

    async def test_violations_block_the_ip_with_a_ttl(self, redis_client, clock):
        store = RedisRateLimitStore(redis_client)
        config = RateLimitConfig(suspicious_threshold=1, suspicious_window_seconds=600, block_seconds=300)
        limiter = RateLimiter(store, config, clock=clock)

        assert not await limiter.record_violation("6.6.6.6")
        assert not await limiter.is_blocked("6.6.6.6")
        assert await limiter.record_violation("6.6.6.6")

        assert await limiter.is_blocked("6.6.6.6")
        assert not await limiter.is_blocked("7.7.7.7")
        assert await redis_client.get("suspicious:6.6.6.6") == "2"
        assert 0 < await redis_client.ttl("suspicious:6.6.6.6") <= 600
        assert 0 < await redis_client.ttl("blocked:6.6.6.6") <= 300
        assert (await store.fallback.describe())["tracked_ips"] == 0

    async def test_block_lifts_once_the_key_is_gone(self, redis_client, clock):
        limiter = RateLimiter(RedisRateLimitStore(redis_client), RateLimitConfig(suspicious_threshold=0), clock=clock)
        await limiter.record_violation("6.6.6.6")

        await redis_client.delete("blocked:6.6.6.6")

        assert not await limiter.is_blocked("6.6.6.6")


class _DownRedis:
    """Stands in for a Redis client whose server is unreachable."""

    def register_script(self, script):
        async def run(**kwargs):
            raise RedisConnectionError("connection refused")

        return run

    async def exists(self, key):
        raise RedisConnectionError("connection refused")

    async def ping(self):
        raise RedisConnectionError("connection refused")

    def pipeline(self, transaction=True):
        raise RedisConnectionError("connection refused")


class TestRedisFallback:
    async def test_hits_fall_back_to_memory(self, clock):
        store = RedisRateLimitStore(_DownRedis())
        limiter = RateLimiter(store, RateLimitConfig(strict_max=1), clock=clock)

        assert (await limiter.check("1.2.3.4", limiter.strict)).allowed
        assert not (await limiter.check("1.2.3.4", limiter.strict)).allowed

    async def test_blocking_falls_back_to_memory(self, clock):
        store = RedisRateLimitStore(_DownRedis())
        limiter = RateLimiter(store, RateLimitConfig(suspicious_threshold=0), clock=clock)

        assert await limiter.record_violation("6.6.6.6")
        assert await limiter.is_blocked("6.6.6.6")

    async def test_describe_reports_disconnected(self):
        details = await RedisRateLimitStore(_DownRedis()).describe()

        assert details["connected"] is False
        assert details["fallback"]["backend"] == "memory"


class TestBuild:
    def test_memory_store_without_redis_url(self):
        limiter = build_rate_limiter(settings)

        assert isinstance(limiter.store, InMemoryRateLimitStore)
        assert limiter.strict == RateLimitRule("strict", 10, 900)
