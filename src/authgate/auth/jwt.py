"""Self-issued JWT creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. Tokens we
mint carry the subject id, email, issued-at and expiry, signed with a
shared HMAC secret:

    {"sub": "<uuid>", "email": "a@x.com", "iat": 1700000000, "exp": 1700604800}

Verification pins the algorithm to the configured one. A token whose
header says "none", "RS256" or a different HMAC size is rejected before
the signature is even looked at (algorithm-confusion defence).
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog

from authgate.auth.verifier import IdentityClaim
from authgate.config import Settings
from authgate.errors import VerificationError

logger = structlog.get_logger()

REQUIRED_CLAIMS = ["sub", "email", "iat", "exp"]


class TokenIssuer:
    """Mints self-issued tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=7),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_in=timedelta(days=settings.token_expire_days),
        )

    def issue(
        self,
        subject_id: str,
        email: str,
        *,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed token for `subject_id`.

        Learn: JWT timestamps have second granularity, so two tokens for
        the same subject issued within one second are identical.
        """
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        payload = {
            "sub": subject_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


class SelfIssuedVerifier:
    """Verifies tokens minted by TokenIssuer."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "SelfIssuedVerifier":
        return cls(secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)

    async def verify(self, token: str) -> IdentityClaim:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.InvalidTokenError as e:
            # ExpiredSignatureError, InvalidAlgorithmError, InvalidSignatureError,
            # DecodeError, MissingRequiredClaimError all land here.
            raise _reject(type(e).__name__)

        subject_id = payload["sub"]
        email = payload["email"]
        if not _is_canonical_uuid(subject_id):
            raise _reject("malformed_subject")
        if not isinstance(email, str) or not email.strip():
            raise _reject("missing_email")

        return IdentityClaim(
            subject_id=subject_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


def _is_canonical_uuid(value) -> bool:
    try:
        return str(uuid.UUID(value)) == value
    except (ValueError, TypeError, AttributeError):
        return False


def _reject(reason: str) -> VerificationError:
    logger.info("credential.rejected", strategy="self_issued", reason=reason)
    return VerificationError()
