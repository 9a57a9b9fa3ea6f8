"""Tests for the user profile endpoints."""

import pytest
from httpx import AsyncClient


async def _create_user(client: AsyncClient, uid: str, name: str) -> dict:
    body = {"uid": uid, "email": f"{uid}@example.com", "display_name": name}
    response = await client.post("/users", json=body)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_users(client: AsyncClient) -> None:
    """Test the first profile is Admin and later ones are Author."""
    first = await _create_user(client, "u1", "Zed")
    second = await _create_user(client, "u2", "amy")

    assert first["role"] == "Admin"
    assert second["role"] == "Author"

    response = await client.get("/users")
    assert [u["display_name"] for u in response.json()] == ["amy", "Zed"]


@pytest.mark.asyncio
async def test_get_user(client: AsyncClient) -> None:
    """Test fetching one profile and a missing one."""
    await _create_user(client, "u1", "One")

    found = await client.get("/users/u1")
    missing = await client.get("/users/ghost")

    assert found.json()["email"] == "u1@example.com"
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient) -> None:
    """Test updating the display name."""
    await _create_user(client, "u1", "One")

    response = await client.patch("/users/u1", json={"display_name": "Uno"})

    assert response.status_code == 200
    assert response.json()["display_name"] == "Uno"
    assert (await client.get("/users/u1")).json()["display_name"] == "Uno"


@pytest.mark.asyncio
async def test_update_role(client: AsyncClient) -> None:
    """Test changing a role and rejecting unknown roles."""
    await _create_user(client, "u1", "One")
    await _create_user(client, "u2", "Two")

    changed = await client.patch("/users/u2/role", json={"role": "Editor"})
    invalid = await client.patch("/users/u2/role", json={"role": "Owner"})
    missing = await client.patch("/users/ghost/role", json={"role": "Editor"})

    assert changed.json()["role"] == "Editor"
    assert invalid.status_code == 422
    assert missing.status_code == 404
