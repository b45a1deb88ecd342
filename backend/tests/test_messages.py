"""Integration tests for anonymous submission and the inbox."""
from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from whisperbox.database import AsyncSessionLocal
from whisperbox.models import Message


async def _send(client: AsyncClient, username: str, content: str):
    return await client.post("/send-message", json={"username": username, "content": content})


@pytest.mark.asyncio
async def test_send_toggle_and_forbidden_scenario(client: AsyncClient, verified_user) -> None:
    """Messages land while accepting, and are refused once acceptance is off."""

    headers = await verified_user("alice")

    response = await _send(client, "alice", "hi")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert len((await client.get("/get-messages", headers=headers)).json()["messages"]) == 1

    response = await client.post("/accept-message", json={"acceptMessages": False}, headers=headers)
    assert response.status_code == 200
    assert response.json()["isAcceptingMessages"] is False

    response = await _send(client, "alice", "hi again")
    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "User is not accepting the messages"}

    messages = (await client.get("/get-messages", headers=headers)).json()["messages"]
    assert [m["content"] for m in messages] == ["hi"]


@pytest.mark.asyncio
async def test_send_to_unknown_or_unverified_user_is_not_found(client: AsyncClient, mailer) -> None:
    response = await _send(client, "ghost", "hello?")
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"

    await client.post(
        "/sign-up",
        json={"username": "pending", "email": "pending@example.com", "password": "secret123"},
    )
    response = await _send(client, "pending", "hello?")
    assert response.status_code == 404

    response = await _send(client, "not a username!", "hello?")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_send_appends_exactly_one_with_fresh_timestamp(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("bob")
    await _send(client, "bob", "first")

    before = datetime.utcnow()
    response = await _send(client, "bob", "  second  ")
    assert response.status_code == 200

    messages = (await client.get("/get-messages", headers=headers)).json()["messages"]
    assert len(messages) == 2
    newest = messages[0]
    assert newest["content"] == "second"
    assert datetime.fromisoformat(newest["createdAt"]) >= before.replace(microsecond=0)
    assert set(newest) == {"id", "content", "createdAt"}


@pytest.mark.asyncio
async def test_send_validates_content(client: AsyncClient, verified_user) -> None:
    await verified_user("carol")

    response = await _send(client, "carol", "   ")
    assert response.status_code == 400
    assert response.json()["message"] == "Message content must not be empty"

    response = await _send(client, "carol", "x" * 301)
    assert response.status_code == 400

    response = await client.post("/send-message", json={"username": "carol"})
    assert response.status_code == 400
    assert response.json()["success"] is False

    async with AsyncSessionLocal() as session:
        assert (await session.execute(select(Message))).scalars().all() == []


@pytest.mark.asyncio
async def test_delete_removes_only_that_message(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("dave")
    for text in ("one", "two", "three"):
        await _send(client, "dave", text)

    messages = (await client.get("/get-messages", headers=headers)).json()["messages"]
    target = next(m for m in messages if m["content"] == "two")

    response = await client.delete(f"/delete-messages/{target['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Message deleted"

    remaining = (await client.get("/get-messages", headers=headers)).json()["messages"]
    assert sorted(m["content"] for m in remaining) == ["one", "three"]

    response = await client.delete(f"/delete-messages/{target['id']}", headers=headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Message not found or already deleted"


@pytest.mark.asyncio
async def test_cannot_delete_someone_elses_message(client: AsyncClient, verified_user) -> None:
    erin = await verified_user("erin")
    frank = await verified_user("frank")
    await _send(client, "erin", "for erin only")

    message_id = (await client.get("/get-messages", headers=erin)).json()["messages"][0]["id"]

    response = await client.delete(f"/delete-messages/{message_id}", headers=frank)
    assert response.status_code == 404
    assert len((await client.get("/get-messages", headers=erin)).json()["messages"]) == 1


@pytest.mark.asyncio
async def test_empty_inbox_and_profile(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("grace")

    response = await client.get("/get-messages", headers=headers)
    assert response.status_code == 200
    assert response.json()["messages"] == []

    response = await client.get("/me", headers=headers)
    assert response.status_code == 200
    assert response.json() == {
        "username": "grace",
        "email": "grace@example.com",
        "isAcceptingMessages": True,
        "anonShield": False,
    }
