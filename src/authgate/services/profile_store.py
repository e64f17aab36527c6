"""Profile store — persistence for user profiles.

Learn: Service layer separates business logic from HTTP routing. The store
owns every database round-trip for UserProfile and translates database
failures into the domain error taxonomy:

- unique violation on create            → ConflictError
- unique violation on create_if_absent  → re-read and return the winner
- connection/driver failure or deadline → StoreUnavailableError (retryable)

Each operation opens its own short-lived session from the factory, so a
single store instance is safe to share across concurrent requests.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.db.models import UserProfile, utcnow
from authgate.errors import ConflictError, NotFoundError, StoreUnavailableError

logger = structlog.get_logger()

T = TypeVar("T")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class ProfileStore:
    """Async SQLAlchemy-backed profile persistence."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout: float = 5.0,
    ):
        self.session_factory = session_factory
        self.timeout = timeout

    # ─── Reads ──────────────────────────────────────────

    async def get_by_id(
        self, profile_id: str, *, timeout: Optional[float] = None
    ) -> Optional[UserProfile]:
        return await self._bounded(self._get_by_id(profile_id), timeout)

    async def get_by_email(
        self, email: str, *, timeout: Optional[float] = None
    ) -> Optional[UserProfile]:
        return await self._bounded(self._get_by_email(email), timeout)

    # ─── Writes ─────────────────────────────────────────

    async def create(
        self, profile: UserProfile, *, timeout: Optional[float] = None
    ) -> UserProfile:
        """Insert a new profile. Duplicate id or email → ConflictError."""
        try:
            created = await self._bounded(self._insert(profile), timeout)
        except IntegrityError as e:
            logger.info("profile.create_conflict", profile_id=profile.id)
            raise ConflictError("Email already registered") from e
        logger.info("profile.created", profile_id=created.id)
        return created

    async def create_if_absent(
        self, profile: UserProfile, *, timeout: Optional[float] = None
    ) -> UserProfile:
        """Insert `profile` unless one with the same id already exists.

        Learn: This is the concurrency-critical primitive. We do NOT check
        for existence first — two requests could both see "absent" and both
        insert. Instead we insert and let the primary key / unique email
        constraint reject the loser, which then reads back the winner's row.
        """
        try:
            created = await self._bounded(self._insert(profile), timeout)
        except IntegrityError:
            existing = await self.get_by_id(profile.id, timeout=timeout)
            if existing is None:
                # The email index fired: another subject owns this email.
                logger.warning("profile.email_taken", profile_id=profile.id)
                raise ConflictError("Email is linked to another profile")
            logger.info("profile.create_raced", profile_id=profile.id)
            return existing
        logger.info("profile.created", profile_id=created.id)
        return created

    async def update(
        self,
        profile_id: str,
        *,
        profile_images: Optional[list[str]] = None,
        timeout: Optional[float] = None,
    ) -> UserProfile:
        """Patch the mutable fields of a profile and refresh updated_at."""
        profile = await self._bounded(
            self._update(profile_id, profile_images), timeout
        )
        logger.info("profile.updated", profile_id=profile_id)
        return profile

    # ─── Internals ──────────────────────────────────────

    async def _get_by_id(self, profile_id: str) -> Optional[UserProfile]:
        async with self.session_factory() as session:
            return await session.get(UserProfile, profile_id)

    async def _get_by_email(self, email: str) -> Optional[UserProfile]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UserProfile).where(UserProfile.email == normalize_email(email))
            )
            return result.scalars().first()

    async def _insert(self, profile: UserProfile) -> UserProfile:
        async with self.session_factory() as session:
            session.add(profile)
            await session.commit()
        return profile

    async def _update(
        self, profile_id: str, profile_images: Optional[list[str]]
    ) -> UserProfile:
        async with self.session_factory() as session:
            profile = await session.get(UserProfile, profile_id)
            if profile is None:
                raise NotFoundError("Profile not found")
            if profile_images is not None:
                profile.profile_images = list(profile_images)
            profile.updated_at = utcnow()
            await session.commit()
            return profile

    async def _bounded(self, coro: Awaitable[T], timeout: Optional[float]) -> T:
        """Run a store operation under a deadline, mapping backend failures.

        IntegrityError is left to the caller — it means "constraint fired",
        not "store down".
        """
        deadline = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(coro, timeout=deadline)
        except IntegrityError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("profile_store.timeout", timeout=deadline)
            raise StoreUnavailableError("Profile store timed out") from e
        except (DBAPIError, OSError) as e:
            logger.warning("profile_store.unavailable", error=str(e))
            raise StoreUnavailableError("Profile store unavailable") from e
