"""Profile API — the caller's own profile.

Both routes are scoped to the subject in the Bearer token; there is no
way to address somebody else's profile.
"""

from fastapi import APIRouter, Depends

from authgate.auth.dependencies import get_current_claim, get_store
from authgate.auth.verifier import IdentityClaim
from authgate.errors import NotFoundError
from authgate.schemas.profile import ProfileRead, ProfileUpdate
from authgate.services.profile_store import ProfileStore

router = APIRouter(prefix="/profile")


@router.get("", response_model=ProfileRead)
async def get_profile(
    claim: IdentityClaim = Depends(get_current_claim),
    store: ProfileStore = Depends(get_store),
):
    profile = await store.get_by_id(claim.subject_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


@router.put("", response_model=ProfileRead)
async def update_profile(
    body: ProfileUpdate,
    claim: IdentityClaim = Depends(get_current_claim),
    store: ProfileStore = Depends(get_store),
):
    """Replace the caller's profile images."""
    return await store.update(claim.subject_id, profile_images=body.profile_images)
