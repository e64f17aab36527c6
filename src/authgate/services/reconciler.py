"""Identity reconciliation — verified claim → exactly one user profile.

Learn: The first time a provider-verified user calls us there is no
profile yet, and a client app may fire several requests at once with the
same brand-new token. The reconciler:

1. Reads the profile by subject id → found? return it untouched.
2. Otherwise builds a fresh profile and hands it to create_if_absent,
   which lets the database constraint pick a single winner.

Whatever create_if_absent returns (ours or a racing request's row) is the
answer, so every concurrent caller sees the same profile id.
"""

from typing import Optional

from authgate.auth.verifier import IdentityClaim
from authgate.db.models import UserProfile, utcnow
from authgate.services.profile_store import ProfileStore, normalize_email


class IdentityReconciler:
    """Fetch-or-create the profile for a verified identity."""

    def __init__(self, store: ProfileStore):
        self.store = store

    async def reconcile(
        self, claim: IdentityClaim, *, timeout: Optional[float] = None
    ) -> UserProfile:
        existing = await self.store.get_by_id(claim.subject_id, timeout=timeout)
        if existing is not None:
            # Email drift at the provider is not synced back.
            return existing

        now = utcnow()
        profile = UserProfile(
            id=claim.subject_id,
            email=normalize_email(claim.email),
            password_hash=None,
            profile_images=[],
            created_at=now,
            updated_at=now,
        )
        return await self.store.create_if_absent(profile, timeout=timeout)
