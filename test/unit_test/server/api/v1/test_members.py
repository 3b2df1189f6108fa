"""Unit tests for the member directory and profile endpoints."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestDirectory:
    async def test_lists_active_verified_members_only(self, client: AsyncClient, member, member_headers, user_factory):
        await user_factory(first_name="Hidden", is_verified=False)
        await user_factory(first_name="Gone", is_active=False)

        response = await client.get("/api/v1/members", headers=member_headers)

        assert response.status_code == 200
        body = response.json()
        names = [m["first_name"] for m in body["data"]]
        assert names == ["Maria"]
        assert body["meta"]["pagination"]["total"] == 1
        assert "password_hash" not in body["data"][0]

    async def test_search_and_filters(self, client: AsyncClient, member_headers, user_factory):
        await user_factory(first_name="Luis", company="Solar Roofing Co", city="San Jose", skills='["Solar"]')
        await user_factory(first_name="Kim", company="Kim Concrete", city="Fresno", skills='["Concrete"]')

        by_company = await client.get("/api/v1/members", params={"search": "solar"}, headers=member_headers)
        by_city = await client.get("/api/v1/members", params={"city": "fresno"}, headers=member_headers)
        by_skill = await client.get("/api/v1/members", params={"skill": "Solar"}, headers=member_headers)

        assert [m["first_name"] for m in by_company.json()["data"]] == ["Luis"]
        assert [m["first_name"] for m in by_city.json()["data"]] == ["Kim"]
        assert by_skill.json()["data"][0]["skills"] == ["Solar"]

    async def test_pagination_meta(self, client: AsyncClient, member_headers, user_factory):
        for _ in range(4):
            await user_factory()

        response = await client.get("/api/v1/members", params={"page": 2, "limit": 2}, headers=member_headers)

        pagination = response.json()["meta"]["pagination"]
        assert pagination == {
            "page": 2,
            "limit": 2,
            "total": 5,
            "total_pages": 3,
            "has_next": True,
            "has_prev": True,
        }
        assert len(response.json()["data"]) == 2

    async def test_limit_is_bounded(self, client: AsyncClient, member_headers):
        response = await client.get("/api/v1/members", params={"limit": 500}, headers=member_headers)

        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "limit"

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/v1/members")

        assert response.status_code == 401


class TestProfile:
    async def test_read_own_profile(self, client: AsyncClient, member, member_headers):
        response = await client.get("/api/v1/members/me/profile", headers=member_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == member.id
        assert data["phone"] == "510-555-0100"

    async def test_update_profile(self, client: AsyncClient, member_headers):
        response = await client.patch(
            "/api/v1/members/me/profile",
            json={"bio": "Licensed general contractor", "skills": [" Framing ", "", "Drywall"], "website": ""},
            headers=member_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["bio"] == "Licensed general contractor"
        assert data["skills"] == ["Framing", "Drywall"]
        assert data["website"] is None
        assert data["first_name"] == "Maria"

    async def test_update_rejects_bad_url(self, client: AsyncClient, member_headers):
        response = await client.patch(
            "/api/v1/members/me/profile", json={"website": "ftp://example.com"}, headers=member_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "website"

    async def test_get_other_member(self, client: AsyncClient, member_headers, user_factory):
        other = await user_factory(first_name="Theo")

        response = await client.get(f"/api/v1/members/{other.id}", headers=member_headers)

        assert response.status_code == 200
        assert response.json()["data"]["first_name"] == "Theo"

    async def test_inactive_member_is_not_found(self, client: AsyncClient, member_headers, user_factory):
        other = await user_factory(is_active=False)

        response = await client.get(f"/api/v1/members/{other.id}", headers=member_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Member not found"
