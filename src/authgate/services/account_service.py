"""Account service — password registration and login (self-issued strategy).

Learn: Register hashes the password, inserts the profile (the unique email
constraint rejects duplicates) and mints a token. Login looks the profile
up by email and checks the password. Every login failure — unknown email,
provider-only account, wrong password — is the same VerificationError.

bcrypt is deliberately slow, so hashing runs in a worker thread instead of
blocking the event loop for every other request.
"""

import asyncio
import re
import secrets
import uuid
from typing import Optional

import structlog

from authgate.auth.jwt import TokenIssuer
from authgate.auth.password import (
    DEFAULT_ROUNDS,
    MAX_PASSWORD_BYTES,
    hash_password,
    password_too_long,
    verify_password,
)
from authgate.db.models import UserProfile, utcnow
from authgate.errors import ValidationError, VerificationError
from authgate.services.profile_store import ProfileStore, normalize_email

logger = structlog.get_logger()

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AccountService:
    """Business logic for password-based accounts."""

    def __init__(
        self,
        store: ProfileStore,
        issuer: TokenIssuer,
        *,
        password_min_length: int = 8,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self.store = store
        self.issuer = issuer
        self.password_min_length = password_min_length
        self.bcrypt_rounds = bcrypt_rounds
        self._dummy_hash: Optional[str] = None

    async def register(self, email: str, password: str) -> tuple[str, UserProfile]:
        """Create a password account and return (token, profile)."""
        email = normalize_email(email)
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email address")
        if len(password) < self.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.password_min_length} characters"
            )
        if password_too_long(password):
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

        password_hash = await asyncio.to_thread(
            hash_password, password, self.bcrypt_rounds
        )
        now = utcnow()
        profile = await self.store.create(
            UserProfile(
                id=str(uuid.uuid4()),
                email=email,
                password_hash=password_hash,
                profile_images=[],
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("account.registered", profile_id=profile.id)
        return self.issuer.issue(profile.id, profile.email), profile

    async def login(self, email: str, password: str) -> tuple[str, UserProfile]:
        """Check email + password and return (token, profile)."""
        profile = await self.store.get_by_email(email)

        if profile is None or not profile.password_hash:
            # Burn the same bcrypt time so response latency doesn't reveal
            # whether the account exists.
            await asyncio.to_thread(self._check_dummy, password)
            logger.info("account.login_rejected", reason="unknown_account")
            raise VerificationError()

        if not await asyncio.to_thread(verify_password, password, profile.password_hash):
            logger.info(
                "account.login_rejected", reason="wrong_password", profile_id=profile.id
            )
            raise VerificationError()

        logger.info("account.logged_in", profile_id=profile.id)
        return self.issuer.issue(profile.id, profile.email), profile

    def _check_dummy(self, password: str) -> bool:
        """Runs in a worker thread, including the first lazy hash."""
        if self._dummy_hash is None:
            self._dummy_hash = hash_password(
                secrets.token_urlsafe(16), self.bcrypt_rounds
            )
        return verify_password(password, self._dummy_hash)
