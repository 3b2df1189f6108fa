"""Unit tests for the TECH Clean California endpoints."""

import json

import httpx
import pytest
from httpx import AsyncClient

from namc_portal.integrations.hubspot.client import HubSpotClient
from namc_portal.server.services.deps import get_hubspot_client

pytestmark = pytest.mark.asyncio

BASE_URL = "https://mock.hubapi.test"


def contact(contact_id: str, email: str, status: str = "ACTIVE", certifications: str = "") -> dict:
    return {
        "id": contact_id,
        "properties": {
            "email": email,
            "firstname": "Tess",
            "lastname": "Heat",
            "company": "Heat Pump Pros",
            "tech_program_status": status,
            "tech_certifications": certifications,
        },
        "createdAt": "2026-01-05T10:00:00Z",
        "updatedAt": f"2026-02-0{contact_id[-1]}T10:00:00Z",
    }


@pytest.fixture
def hubspot_requests():
    return []


@pytest.fixture
def use_hubspot(app, hubspot_requests):
    """Route the app's HubSpot client to a mock transport answering with ``contacts``."""

    def _install(contacts, status_code: int = 200):
        def handler(request: httpx.Request) -> httpx.Response:
            hubspot_requests.append(request)
            if status_code != 200:
                return httpx.Response(status_code, json={"message": "boom"})
            if request.method == "GET":
                return httpx.Response(200, json={"results": contacts})
            body = json.loads(request.content)
            return httpx.Response(201, json={"id": "hs-new", "properties": body["properties"]})

        async def override():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
                yield HubSpotClient("test-key", base_url=BASE_URL, client=http)

        app.dependency_overrides[get_hubspot_client] = override

    return _install


class TestWithoutHubSpot:
    async def test_contractors_need_hubspot(self, client: AsyncClient, member_headers):
        response = await client.get("/api/v1/tech/contractors", headers=member_headers)

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "EXTERNAL_SERVICE_ERROR"
        assert error["message"] == "HubSpot service error: HUBSPOT_API_KEY is not configured"

    async def test_projects_work_without_hubspot(self, client: AsyncClient, member, member_headers):
        created = await client.post(
            "/api/v1/tech/projects",
            json={"title": "Heat pump swap", "estimated_incentive": 3000, "installation_city": "Richmond"},
            headers=member_headers,
        )

        assert created.status_code == 201
        data = created.json()["data"]
        assert data["contractor_id"] == member.id
        assert data["status"] == "inquiry"
        assert data["type"] == "hvac"
        assert data["installation_state"] == "CA"

        listed = await client.get("/api/v1/tech/projects", headers=member_headers)
        assert [p["id"] for p in listed.json()["data"]] == [data["id"]]

    async def test_members_only_see_their_projects(
        self, client: AsyncClient, member_headers, admin_headers, user_factory, headers_for
    ):
        other = await user_factory()
        await client.post("/api/v1/tech/projects", json={}, headers=member_headers)
        await client.post("/api/v1/tech/projects", json={}, headers=headers_for(other))

        own = await client.get("/api/v1/tech/projects", headers=member_headers)
        everyone = await client.get("/api/v1/tech/projects", headers=admin_headers)

        assert len(own.json()["data"]) == 1
        assert len(everyone.json()["data"]) == 2

    async def test_requires_authentication(self, client: AsyncClient):
        assert (await client.get("/api/v1/tech/projects")).status_code == 401


class TestContractors:
    async def test_admin_sees_program_contacts(self, client: AsyncClient, admin_headers, use_hubspot, hubspot_requests):
        use_hubspot(
            [
                contact("c1", "one@example.com", certifications="HVAC, Heat Pump"),
                contact("c2", "two@example.com", status="bogus"),
                {"id": "c3", "properties": {"email": "not-in-program@example.com"}},
            ]
        )

        response = await client.get("/api/v1/tech/contractors", headers=admin_headers)

        assert response.status_code == 200
        contractors = response.json()["data"]
        assert [c["id"] for c in contractors] == ["c1", "c2"]
        assert contractors[0]["certifications"] == ["HVAC", "Heat Pump"]
        assert contractors[0]["name"] == "Tess Heat"
        assert contractors[1]["status"] == "PENDING"
        assert "tech_program_status" in hubspot_requests[0].url.params["properties"]
        assert hubspot_requests[0].headers["authorization"] == "Bearer test-key"

    async def test_member_sees_only_own_record(self, client: AsyncClient, member, member_headers, use_hubspot):
        use_hubspot([contact("c1", member.email.upper()), contact("c2", "someone@example.com")])

        response = await client.get("/api/v1/tech/contractors", headers=member_headers)

        assert [c["id"] for c in response.json()["data"]] == ["c1"]

    async def test_enroll(self, client: AsyncClient, member, member_headers, use_hubspot, hubspot_requests):
        use_hubspot([])

        response = await client.post(
            "/api/v1/tech/contractors", json={"certifications": ["HVAC"]}, headers=member_headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "ACTIVE"
        assert data["email"] == member.email
        sent = json.loads(hubspot_requests[0].content)["properties"]
        assert sent["tech_program_status"] == "ACTIVE"
        assert sent["tech_certifications"] == "HVAC"
        assert sent["phone"] == "510-555-0100"

    async def test_hubspot_failure_is_a_bad_gateway(self, client: AsyncClient, admin_headers, use_hubspot):
        use_hubspot([], status_code=500)

        response = await client.get("/api/v1/tech/contractors", headers=admin_headers)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


class TestDashboard:
    async def test_summary(self, client: AsyncClient, admin_headers, use_hubspot):
        use_hubspot(
            [
                contact("c1", "one@example.com", certifications="HVAC"),
                contact("c2", "two@example.com", status="PENDING", certifications="HVAC,Solar"),
            ]
        )
        await client.post("/api/v1/tech/projects", json={"estimated_incentive": 1250.5}, headers=admin_headers)

        response = await client.get("/api/v1/tech/dashboard", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["summary"] == {
            "total_contractors": 2,
            "active_contractors": 1,
            "pending_contractors": 1,
            "total_certifications": 3,
            "total_projects": 1,
            "total_estimated_incentive": 1250.5,
        }
        assert data["contractors_by_status"] == {"ACTIVE": 1, "PENDING": 1, "INACTIVE": 0}
        assert data["projects_by_status"] == {"inquiry": 1}
        assert [c["id"] for c in data["recent_contractors"]] == ["c2", "c1"]
