"""Unit tests for liveness, version and the detailed health report."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from namc_portal.core.models.io.health import CheckStatus, HealthCheck, OverallStatus
from namc_portal.server.api.v1 import health
from namc_portal.server.core import constant

pytestmark = pytest.mark.asyncio


class TestLiveness:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_version(self, client: AsyncClient):
        response = await client.get("/version")

        assert response.json() == {"version": constant.VERSION, "schema_version": "v1"}


class TestDetailedReport:
    async def test_degraded_without_optional_services(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        report = response.json()
        assert report["status"] == "degraded"
        assert report["environment"] == "test"
        assert report["checks"]["database"]["status"] == "pass"
        assert report["checks"]["redis"]["status"] == "warn"
        assert report["checks"]["hubspot"]["message"] == "HUBSPOT_API_KEY not configured"
        assert "max_rss_mb" in report["checks"]["memory"]["details"]

    async def test_database_failure_is_unhealthy(self, client: AsyncClient, monkeypatch):
        async def broken_ping(session):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr(health, "ping", broken_ping)

        response = await client.get("/api/v1/health")
        probe = await client.head("/api/v1/health")

        assert response.status_code == 503
        assert response.json()["checks"]["database"]["status"] == "fail"
        assert probe.status_code == 503

    async def test_probe_healthy_enough(self, client: AsyncClient):
        response = await client.head("/api/v1/health")

        assert response.status_code == 200

    async def test_limiter_details_admin_only(self, client: AsyncClient, member_headers, admin_headers):
        forbidden = await client.get("/api/v1/health/redis", headers=member_headers)
        allowed = await client.get("/api/v1/health/redis", headers=admin_headers)

        assert forbidden.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["success"] is True


class TestOverallStatus:
    @pytest.mark.parametrize(
        "statuses,expected",
        [
            ([CheckStatus.PASS, CheckStatus.PASS], OverallStatus.HEALTHY),
            ([CheckStatus.PASS, CheckStatus.WARN], OverallStatus.DEGRADED),
            ([CheckStatus.WARN, CheckStatus.FAIL], OverallStatus.UNHEALTHY),
        ],
    )
    async def test_worst_check_wins(self, statuses, expected):
        checks = {str(i): HealthCheck(status=s) for i, s in enumerate(statuses)}

        assert health.overall_status(checks) is expected
