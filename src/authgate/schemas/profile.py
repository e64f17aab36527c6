"""Pydantic schemas for accounts, tokens and profiles.

Learn: Pydantic v2 models validate request/response data. ProfileRead is
the only outward shape of a UserProfile — it has no password_hash field,
so the hash can never leak into a response by accident.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


# ─── Profiles ───────────────────────────────────────────

class ProfileRead(BaseModel):
    id: str
    email: str
    profile_images: list[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; stored values are always UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ProfileUpdate(BaseModel):
    """Owner-writable profile fields."""
    profile_images: list[str] = Field(..., max_length=50)


# ─── Accounts (self-issued strategy) ────────────────────

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: ProfileRead


# ─── Verification ───────────────────────────────────────

class VerifyRequest(BaseModel):
    token: str = Field(..., min_length=1)


class VerifyResponse(BaseModel):
    uid: str
    email: str
    user: ProfileRead
