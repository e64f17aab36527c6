"""Provider-strategy API tests.

Learn: The app is built with credential_strategy="provider" and a
FakeProviderClient in place of the real identity provider. These tests
walk the first-contact flow: a brand-new provider user calls /verify,
gets a profile created on the spot, and every later call (or racing
call) sees that same profile.
"""

import asyncio

import pytest

FIREBASE_UID = "Xk2pQ9fXr0aBcDeFgH1234567890"


@pytest.fixture()
def known_token(provider_client):
    provider_client.tokens["id-token-1"] = {
        "sub": FIREBASE_UID,
        "email": "social@x.com",
        "iat": 1700000000,
        "exp": 1700003600,
    }
    return "id-token-1"


@pytest.mark.asyncio
async def test_first_verify_creates_profile(provider_app_client, known_token):
    r = await provider_app_client.post("/api/v1/auth/verify", json={"token": known_token})
    assert r.status_code == 200

    body = r.json()
    assert body["uid"] == FIREBASE_UID
    assert body["email"] == "social@x.com"
    assert body["user"]["id"] == FIREBASE_UID
    assert body["user"]["profile_images"] == []


@pytest.mark.asyncio
async def test_second_verify_returns_same_profile(provider_app_client, known_token):
    r1 = await provider_app_client.post("/api/v1/auth/verify", json={"token": known_token})
    r2 = await provider_app_client.post("/api/v1/auth/verify", json={"token": known_token})

    assert r1.json()["user"] == r2.json()["user"]


@pytest.mark.asyncio
async def test_concurrent_first_verifies_agree(provider_app_client, known_token, store):
    responses = await asyncio.gather(
        *(
            provider_app_client.post("/api/v1/auth/verify", json={"token": known_token})
            for _ in range(5)
        )
    )

    assert {r.status_code for r in responses} == {200}
    assert {r.json()["user"]["id"] for r in responses} == {FIREBASE_UID}
    assert {r.json()["user"]["created_at"] for r in responses} == {
        responses[0].json()["user"]["created_at"]
    }
    assert await store.get_by_id(FIREBASE_UID) is not None


@pytest.mark.asyncio
async def test_profile_routes_with_provider_token(provider_app_client, known_token):
    headers = {"Authorization": f"Bearer {known_token}"}

    r = await provider_app_client.get("/api/v1/profile", headers=headers)
    assert r.status_code == 404

    await provider_app_client.post("/api/v1/auth/verify", json={"token": known_token})

    r = await provider_app_client.put(
        "/api/v1/profile", json={"profile_images": ["https://img/1"]}, headers=headers
    )
    assert r.status_code == 200
    assert r.json()["profile_images"] == ["https://img/1"]


@pytest.mark.asyncio
async def test_provider_rejection_is_generic_401(provider_app_client):
    r = await provider_app_client.post("/api/v1/auth/verify", json={"token": "unknown"})
    assert r.status_code == 401
    assert r.json() == {
        "detail": "Invalid or expired credential",
        "code": "invalid_credential",
    }


@pytest.mark.asyncio
async def test_email_claimed_by_other_subject_conflicts(provider_app_client, provider_client):
    provider_client.tokens["tok-a"] = {"sub": "uid-a", "email": "shared@x.com"}
    provider_client.tokens["tok-b"] = {"sub": "uid-b", "email": "shared@x.com"}

    r = await provider_app_client.post("/api/v1/auth/verify", json={"token": "tok-a"})
    assert r.status_code == 200

    r = await provider_app_client.post("/api/v1/auth/verify", json={"token": "tok-b"})
    assert r.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/v1/auth/register", "/api/v1/auth/login"])
async def test_password_routes_not_mounted(provider_app_client, path):
    r = await provider_app_client.post(
        path, json={"email": "a@x.com", "password": "longenough1"}
    )
    assert r.status_code == 404
