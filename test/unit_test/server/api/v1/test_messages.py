"""Unit tests for member-to-member messaging."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def peer(user_factory):
    return await user_factory(first_name="Priya")


async def send(client: AsyncClient, headers: dict, receiver_id: str, content: str = "Hello there") -> dict:
    response = await client.post(
        "/api/v1/messages", json={"receiver_id": receiver_id, "subject": "Bid", "content": content}, headers=headers
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestSendMessage:
    async def test_send(self, client: AsyncClient, member, member_headers, peer):
        data = await send(client, member_headers, peer.id)

        assert data["sender_id"] == member.id
        assert data["receiver_id"] == peer.id
        assert data["status"] == "SENT"
        assert data["read_at"] is None

    async def test_cannot_message_self(self, client: AsyncClient, member, member_headers):
        response = await client.post(
            "/api/v1/messages", json={"receiver_id": member.id, "content": "Note to self"}, headers=member_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_receiver(self, client: AsyncClient, member_headers):
        response = await client.post(
            "/api/v1/messages", json={"receiver_id": "missing", "content": "Hi"}, headers=member_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Receiver not found"

    async def test_content_required(self, client: AsyncClient, member_headers, peer):
        response = await client.post(
            "/api/v1/messages", json={"receiver_id": peer.id, "content": ""}, headers=member_headers
        )

        assert response.status_code == 400


class TestFolders:
    async def test_inbox_sent_and_unread(self, client: AsyncClient, member, member_headers, peer, headers_for):
        peer_headers = headers_for(peer)
        await send(client, member_headers, peer.id, "first")
        await send(client, member_headers, peer.id, "second")

        inbox = await client.get("/api/v1/messages", headers=peer_headers)
        sent = await client.get("/api/v1/messages", params={"folder": "sent"}, headers=member_headers)
        unread = await client.get("/api/v1/messages/unread-count", headers=peer_headers)

        assert [m["content"] for m in inbox.json()["data"]] == ["second", "first"]
        assert len(sent.json()["data"]) == 2
        assert unread.json()["data"] == {"unread": 2}

    async def test_unknown_folder_rejected(self, client: AsyncClient, member_headers):
        response = await client.get("/api/v1/messages", params={"folder": "trash"}, headers=member_headers)

        assert response.status_code == 400


class TestReadAndArchive:
    async def test_receiver_reading_marks_read(self, client: AsyncClient, member_headers, peer, headers_for):
        message = await send(client, member_headers, peer.id)

        response = await client.get(f"/api/v1/messages/{message['id']}", headers=headers_for(peer))

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "READ"
        assert response.json()["data"]["read_at"] is not None
        unread = await client.get("/api/v1/messages/unread-count", headers=headers_for(peer))
        assert unread.json()["data"]["unread"] == 0

    async def test_sender_reading_leaves_status(self, client: AsyncClient, member_headers, peer):
        message = await send(client, member_headers, peer.id)

        response = await client.get(f"/api/v1/messages/{message['id']}", headers=member_headers)

        assert response.json()["data"]["status"] == "SENT"

    async def test_outsider_cannot_read(self, client: AsyncClient, member_headers, peer, user_factory, headers_for):
        message = await send(client, member_headers, peer.id)
        outsider = await user_factory()

        response = await client.get(f"/api/v1/messages/{message['id']}", headers=headers_for(outsider))

        assert response.status_code == 404

    async def test_archive_moves_message(self, client: AsyncClient, member_headers, peer, headers_for):
        message = await send(client, member_headers, peer.id)
        peer_headers = headers_for(peer)

        archived = await client.post(f"/api/v1/messages/{message['id']}/archive", headers=peer_headers)
        inbox = await client.get("/api/v1/messages", headers=peer_headers)
        folder = await client.get("/api/v1/messages", params={"folder": "archived"}, headers=peer_headers)

        assert archived.json()["data"]["status"] == "ARCHIVED"
        assert inbox.json()["data"] == []
        assert [m["id"] for m in folder.json()["data"]] == [message["id"]]

    async def test_only_receiver_archives(self, client: AsyncClient, member_headers, peer):
        message = await send(client, member_headers, peer.id)

        response = await client.post(f"/api/v1/messages/{message['id']}/archive", headers=member_headers)

        assert response.status_code == 400
