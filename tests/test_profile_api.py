import dataclasses

import pytest

import warddost.profiles as profiles
from conftest import bearer


@pytest.mark.asyncio
async def test_missing_token_is_401(client):
    resp = await client.get("/api/v1/profile/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_invalid_token_is_401(client):
    resp = await client.get("/api/v1/profile/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_without_profile_is_403(client):
    resp = await client.get("/api/v1/wards", headers=bearer("nobody"))
    assert resp.status_code == 403
    assert "signup" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_create_and_read_profile(client):
    headers = bearer("asha", email="asha@example.com")
    resp = await client.post("/api/v1/profile", json={"full_name": "Asha Rao", "phone": "9800000000"}, headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["role"] == "citizen"
    assert body["user_id"] == "asha"
    # Falls back to the email claim in the token.
    assert body["email"] == "asha@example.com"

    me = await client.get("/api/v1/profile/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["full_name"] == "Asha Rao"


@pytest.mark.asyncio
async def test_profile_is_created_once(client, make_user):
    headers = await make_user("dup-user")
    resp = await client.post("/api/v1/profile", json={"full_name": "Again"}, headers=headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_profile_keeps_role(client, citizen):
    resp = await client.patch("/api/v1/profile/me", json={"full_name": "New Name", "phone": "12345"}, headers=citizen)
    assert resp.status_code == 200
    body = resp.json()
    assert body["full_name"] == "New Name"
    assert body["phone"] == "12345"
    assert body["role"] == "citizen"


@pytest.mark.asyncio
async def test_authority_signup_respects_allowlist(client, monkeypatch):
    restricted = dataclasses.replace(profiles.get_settings(), authority_signup_emails=frozenset({"ee@bbmp.gov.in"}))
    monkeypatch.setattr(profiles, "get_settings", lambda: restricted)

    denied = await client.post(
        "/api/v1/profile",
        json={"full_name": "Impostor", "email": "me@gmail.com", "role": "authority"},
        headers=bearer("impostor"),
    )
    assert denied.status_code == 403
    assert denied.json()["field"] == "role"

    allowed = await client.post(
        "/api/v1/profile",
        json={"full_name": "Engineer", "email": "EE@bbmp.gov.in", "role": "authority"},
        headers=bearer("engineer"),
    )
    assert allowed.status_code == 201
    assert allowed.json()["role"] == "authority"


@pytest.mark.asyncio
async def test_unknown_role_is_rejected(client):
    resp = await client.post("/api/v1/profile", json={"full_name": "X", "role": "admin"}, headers=bearer("x"))
    assert resp.status_code == 422
