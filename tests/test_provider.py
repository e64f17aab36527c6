"""Provider-delegated verification tests.

Learn: Two layers under test:
1. ProviderDelegatedVerifier with a fake client — failure collapsing,
   missing email, deadline handling.
2. FirebaseIdTokenClient with a locally generated RSA key pair standing in
   for the provider's JWKS — signature, audience, issuer and expiry checks.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from authgate.auth.provider import (
    FIREBASE_ISSUER_PREFIX,
    FirebaseIdTokenClient,
    ProviderDelegatedVerifier,
)
from authgate.errors import VerificationError

from conftest import PROVIDER_PROJECT, FakeProviderClient


# ═══════════════════════════════════════════════════════════
# ProviderDelegatedVerifier
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_provider_claims_become_identity_claim():
    client = FakeProviderClient(
        {"tok": {"sub": "firebase-uid-1", "email": "a@x.com", "iat": 1700000000, "exp": 1700003600}}
    )
    claim = await ProviderDelegatedVerifier(client).verify("tok")

    assert claim.subject_id == "firebase-uid-1"
    assert claim.email == "a@x.com"
    assert claim.issued_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert claim.expires_at == datetime.fromtimestamp(1700003600, tz=timezone.utc)
    assert client.calls == ["tok"]


@pytest.mark.asyncio
async def test_uid_claim_accepted_as_subject():
    client = FakeProviderClient({"tok": {"uid": "uid-7", "email": "b@x.com"}})
    claim = await ProviderDelegatedVerifier(client).verify("tok")
    assert claim.subject_id == "uid-7"
    assert claim.issued_at is None


@pytest.mark.asyncio
async def test_provider_failure_is_invalid():
    with pytest.raises(VerificationError):
        await ProviderDelegatedVerifier(FakeProviderClient()).verify("unknown")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "uid-1"},
        {"sub": "uid-1", "email": ""},
        {"sub": "uid-1", "email": None},
        {"email": "a@x.com"},
        {"sub": "", "email": "a@x.com"},
    ],
)
async def test_missing_subject_or_email_is_invalid(claims):
    client = FakeProviderClient({"tok": claims})
    with pytest.raises(VerificationError):
        await ProviderDelegatedVerifier(client).verify("tok")


@pytest.mark.asyncio
async def test_slow_provider_times_out_as_invalid():
    class SlowClient:
        async def verify_id_token(self, token):
            await asyncio.sleep(5)
            return {"sub": "uid-1", "email": "a@x.com"}

    with pytest.raises(VerificationError):
        await ProviderDelegatedVerifier(SlowClient(), timeout=0.05).verify("tok")


# ═══════════════════════════════════════════════════════════
# FirebaseIdTokenClient
# ═══════════════════════════════════════════════════════════


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture()
def firebase_client(rsa_key):
    class StaticJwks:
        """Returns our test public key for any kid, like a one-key JWKS."""

        def get_signing_key_from_jwt(self, token):
            return SimpleNamespace(key=rsa_key.public_key())

    return FirebaseIdTokenClient(PROVIDER_PROJECT, jwk_client=StaticJwks())


def _id_token(key, **overrides) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "iss": f"{FIREBASE_ISSUER_PREFIX}{PROVIDER_PROJECT}",
        "aud": PROVIDER_PROJECT,
        "sub": "firebase-uid-1",
        "email": "a@x.com",
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": "test-key"})


@pytest.mark.asyncio
async def test_firebase_token_verifies(firebase_client, rsa_key):
    claims = await firebase_client.verify_id_token(_id_token(rsa_key))
    assert claims["sub"] == "firebase-uid-1"
    assert claims["email"] == "a@x.com"


@pytest.mark.asyncio
async def test_firebase_token_through_verifier(firebase_client, rsa_key):
    claim = await ProviderDelegatedVerifier(firebase_client).verify(_id_token(rsa_key))
    assert claim.subject_id == "firebase-uid-1"
    assert claim.email == "a@x.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"aud": "some-other-project"},
        {"iss": "https://securetoken.google.com/some-other-project"},
        {
            "iat": datetime.now(timezone.utc) - timedelta(hours=3),
            "exp": datetime.now(timezone.utc) - timedelta(hours=2),
        },
    ],
)
async def test_firebase_rejects_bad_claims(firebase_client, rsa_key, overrides):
    verifier = ProviderDelegatedVerifier(firebase_client)
    with pytest.raises(VerificationError):
        await verifier.verify(_id_token(rsa_key, **overrides))


@pytest.mark.asyncio
async def test_firebase_rejects_foreign_signature(firebase_client):
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    verifier = ProviderDelegatedVerifier(firebase_client)
    with pytest.raises(VerificationError):
        await verifier.verify(_id_token(other_key))


@pytest.mark.asyncio
async def test_firebase_rejects_hmac_token(firebase_client):
    """An HS256 token must not verify against the RSA public key."""
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "iss": f"{FIREBASE_ISSUER_PREFIX}{PROVIDER_PROJECT}",
            "aud": PROVIDER_PROJECT,
            "sub": "firebase-uid-1",
            "email": "a@x.com",
            "iat": now,
            "exp": now + timedelta(hours=1),
        },
        "0123456789abcdef" * 4,
        algorithm="HS256",
    )
    with pytest.raises(VerificationError):
        await ProviderDelegatedVerifier(firebase_client).verify(token)
