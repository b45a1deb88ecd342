"""Integration tests for the acceptance toggle and anon shield."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_accept_toggle_is_idempotent(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("alice")

    response = await client.get("/accept-message", headers=headers)
    assert response.json() == {"success": True, "message": None, "isAcceptingMessages": True}

    for _ in range(2):
        response = await client.post("/accept-message", json={"acceptMessages": True}, headers=headers)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["isAcceptingMessages"] is True

    response = await client.get("/accept-message", headers=headers)
    assert response.json()["isAcceptingMessages"] is True


@pytest.mark.asyncio
async def test_reopening_inbox_keeps_old_messages(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("bob")
    await client.post("/send-message", json={"username": "bob", "content": "kept"})

    await client.post("/accept-message", json={"acceptMessages": False}, headers=headers)
    messages = (await client.get("/get-messages", headers=headers)).json()["messages"]
    assert [m["content"] for m in messages] == ["kept"]

    await client.post("/accept-message", json={"acceptMessages": True}, headers=headers)
    response = await client.post("/send-message", json={"username": "bob", "content": "new"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_accept_toggle_requires_boolean(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("carol")

    response = await client.post("/accept-message", json={}, headers=headers)
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_anon_shield_toggle_and_public_status(client: AsyncClient, verified_user) -> None:
    headers = await verified_user("dave")

    response = await client.get("/anon-shield", headers=headers)
    assert response.json()["anonShield"] is False

    response = await client.get("/anon-status/dave")
    assert response.status_code == 403
    assert response.json()["message"] == "User has anon shield disabled"

    response = await client.post("/anon-shield", json={"anonShield": True}, headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Anon Shield enabled"
    assert response.json()["anonShield"] is True

    response = await client.get("/anon-status/dave")
    assert response.status_code == 200
    assert response.json()["anonShield"] is True

    response = await client.post("/anon-shield", json={"anonShield": False}, headers=headers)
    assert response.json()["message"] == "Anon Shield disabled"


@pytest.mark.asyncio
async def test_anon_status_unknown_user(client: AsyncClient) -> None:
    response = await client.get("/anon-status/nobody")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
