"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Which routes exist depends on the credential strategy. Password
register/login only make sense when we issue our own tokens; the verify
and profile routes work the same under either strategy.
"""

from fastapi import APIRouter

from authgate.api.auth import password_router
from authgate.api.auth import router as auth_router
from authgate.api.health import router as health_router
from authgate.api.profile import router as profile_router


def build_api_router(credential_strategy: str) -> APIRouter:
    api_router = APIRouter(prefix="/api/v1")

    # Open routes — no auth required
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router, tags=["auth"])
    if credential_strategy == "self_issued":
        api_router.include_router(password_router, tags=["auth"])

    # Bearer-protected (auth enforced per route via get_current_claim)
    api_router.include_router(profile_router, tags=["profile"])

    return api_router
