"""Provider-delegated credential verification.

Learn: With the "provider" strategy, users sign up and log in through an
external identity provider's client SDK (Firebase Auth in our deployment).
The client sends us the provider's ID token; we never see a password.

Two pieces:
1. IdentityProviderClient — talks to the provider. FirebaseIdTokenClient
   checks the RS256 signature against the provider's published JWKS and
   validates audience/issuer, returning the raw claim set.
2. ProviderDelegatedVerifier — bounds the client call by a deadline,
   collapses *any* failure into VerificationError, and extracts the
   subject + email into an IdentityClaim.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

import jwt
import structlog

from authgate.auth.verifier import IdentityClaim
from authgate.errors import VerificationError

logger = structlog.get_logger()

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)


class IdentityProviderClient(Protocol):
    async def verify_id_token(self, token: str) -> Mapping[str, Any]:
        """Return the provider's claim set for `token`, or raise."""
        ...


class FirebaseIdTokenClient:
    """Verifies Firebase Auth ID tokens locally against Google's JWKS.

    Learn: Firebase ID tokens are ordinary RS256 JWTs. The signing keys
    rotate, so PyJWKClient fetches the key set by the token's "kid" and
    caches it. The fetch is blocking HTTP, so it runs in a worker thread.
    """

    def __init__(
        self,
        project_id: str,
        jwks_url: str = FIREBASE_JWKS_URL,
        jwk_client: Optional[jwt.PyJWKClient] = None,
    ):
        self.project_id = project_id
        self.issuer = f"{FIREBASE_ISSUER_PREFIX}{project_id}"
        self._jwks = jwk_client or jwt.PyJWKClient(jwks_url, cache_keys=True)

    async def verify_id_token(self, token: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._decode, token)

    def _decode(self, token: str) -> dict:
        signing_key = self._jwks.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self.project_id,
            issuer=self.issuer,
            options={"require": ["sub", "iat", "exp", "aud", "iss"]},
        )


class ProviderDelegatedVerifier:
    """CredentialVerifier backed by an external identity provider."""

    def __init__(self, client: IdentityProviderClient, timeout: float = 5.0):
        self.client = client
        self.timeout = timeout

    async def verify(self, token: str) -> IdentityClaim:
        try:
            claims = await asyncio.wait_for(
                self.client.verify_id_token(token), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise _reject("provider_timeout")
        except Exception as e:
            # The provider's failure modes are open-ended (bad signature,
            # revoked user, network error); all of them mean "not verified".
            raise _reject(type(e).__name__)

        subject_id = claims.get("sub") or claims.get("uid") or claims.get("user_id")
        email = claims.get("email")
        if not isinstance(subject_id, str) or not subject_id:
            raise _reject("missing_subject")
        if not isinstance(email, str) or not email.strip():
            raise _reject("missing_email")

        return IdentityClaim(
            subject_id=subject_id,
            email=email,
            issued_at=_timestamp(claims.get("iat")),
            expires_at=_timestamp(claims.get("exp")),
        )


def _timestamp(value) -> Optional[datetime]:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


def _reject(reason: str) -> VerificationError:
    logger.info("credential.rejected", strategy="provider", reason=reason)
    return VerificationError()
