"""Credential verification contract and strategy selection.

Learn: Routes never care *how* a bearer token was checked. They depend on
a CredentialVerifier — anything with `async verify(token) -> IdentityClaim`
— and build_verifier() picks the implementation once at startup:

- "self_issued" → SelfIssuedVerifier (HMAC-signed JWT, auth/jwt.py)
- "provider"    → ProviderDelegatedVerifier (external IdP, auth/provider.py)

Both raise VerificationError for *every* kind of failure. Callers cannot
tell an expired token from a forged one.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from authgate.config import Settings


@dataclass(frozen=True)
class IdentityClaim:
    """Identity attributes extracted from a verified credential."""

    subject_id: str
    email: str
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class CredentialVerifier(Protocol):
    async def verify(self, token: str) -> IdentityClaim:
        """Return the claim carried by `token` or raise VerificationError."""
        ...


def build_verifier(settings: Settings) -> CredentialVerifier:
    """Construct the verifier for the configured credential strategy."""
    if settings.credential_strategy == "provider":
        from authgate.auth.provider import (
            FirebaseIdTokenClient,
            ProviderDelegatedVerifier,
        )

        client = FirebaseIdTokenClient(
            project_id=settings.identity_provider_project_id,
            jwks_url=settings.identity_provider_jwks_url,
        )
        return ProviderDelegatedVerifier(
            client, timeout=settings.provider_timeout_seconds
        )

    from authgate.auth.jwt import SelfIssuedVerifier

    return SelfIssuedVerifier.from_settings(settings)
