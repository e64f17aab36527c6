"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic auto-generates migrations by comparing these models to the actual DB.

Key concepts:
- String primary key: holds either our own UUIDs or a provider's subject id
- The unique constraint on email is what makes concurrent first logins safe —
  the database, not application code, decides who wins an insert race
- Generic JSON/DateTime types so the same model runs on PostgreSQL and SQLite
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(Base):
    """One registered identity.

    Learn: Created exactly once — at registration (self-issued strategy)
    or on the first verified login (provider strategy). Afterwards only
    profile_images and updated_at ever change.
    """

    __tablename__ = "user_profiles"
    __table_args__ = (
        UniqueConstraint("email", name="uq_user_profiles_email"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )  # null for provider-verified profiles
    profile_images: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
