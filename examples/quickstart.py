#!/usr/bin/env python3
"""
AuthGate Quickstart — the whole credential lifecycle in one script.

Registers an account → logs in → verifies the token → reads and
updates the profile → shows that a forged token is rejected.
Run with: python examples/quickstart.py

Requires: pip install httpx
Gateway must be running with the self-issued strategy: http://localhost:8081
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8081/api/v1"


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking gateway health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Gateway not reachable at {BASE}")
        print("Start it with:  authgate init-db && authgate serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Strategy: {health['strategy']}")
    if health["strategy"] != "self_issued":
        print("\nThis walkthrough needs AUTHGATE_CREDENTIAL_STRATEGY=self_issued")
        sys.exit(1)

    # ── Register ──────────────────────────────────────────────────
    email = f"demo-{run_id}@example.com"
    password = "demo-password-123"
    print(f"\n1. Registering {email}...")
    resp = client.post("/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, f"Failed: {resp.text}"
    user = resp.json()["user"]
    print(f"   Profile: {user['id']}")

    # ── Duplicate registration ────────────────────────────────────
    resp = client.post("/auth/register", json={"email": email, "password": password})
    print(f"   Registering again → {resp.status_code} ({resp.json()['code']})")

    # ── Login ─────────────────────────────────────────────────────
    print("\n2. Logging in...")
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    token = resp.json()["token"]
    print(f"   Token: {token[:24]}...")

    resp = client.post("/auth/login", json={"email": email, "password": "wrong-password"})
    print(f"   Wrong password → {resp.status_code}")

    # ── Verify ────────────────────────────────────────────────────
    print("\n3. Verifying token...")
    resp = client.post("/auth/verify", json={"token": token})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   uid={resp.json()['uid']} email={resp.json()['email']}")

    header, payload, signature = token.split(".")
    forged = f"{header}.{payload}.{signature[::-1]}"
    resp = client.post("/auth/verify", json={"token": forged})
    print(f"   Forged signature → {resp.status_code} ({resp.json()['detail']})")

    # ── Profile ───────────────────────────────────────────────────
    print("\n4. Updating profile images...")
    auth = {"Authorization": f"Bearer {token}"}
    resp = client.put(
        "/profile",
        json={"profile_images": [f"https://cdn.example.com/{run_id}/avatar.png"]},
        headers=auth,
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"

    resp = client.get("/profile", headers=auth)
    profile = resp.json()
    print(f"   Images: {profile['profile_images']}")
    print(f"   Updated: {profile['updated_at']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
