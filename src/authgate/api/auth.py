"""Auth API — registration, login, token verification.

Learn: Routes for the credential lifecycle:
- POST /auth/register → email/password → profile + self-issued token
- POST /auth/login → email/password → self-issued token
- POST /auth/verify → any bearer credential → claim + reconciled profile

Register/login live on password_router, which is only mounted under the
self-issued strategy. With an external identity provider, sign-up and
login happen in the provider's client SDK and clients only call /verify.
"""

from fastapi import APIRouter, Depends

from authgate.auth.dependencies import (
    get_account_service,
    get_reconciler,
    get_verifier,
)
from authgate.auth.verifier import CredentialVerifier
from authgate.schemas.profile import (
    AuthResponse,
    LoginRequest,
    ProfileRead,
    RegisterRequest,
    VerifyRequest,
    VerifyResponse,
)
from authgate.services.account_service import AccountService
from authgate.services.reconciler import IdentityReconciler

router = APIRouter(prefix="/auth")
password_router = APIRouter(prefix="/auth")


# ─── Register ────────────────────────────────────────────


@password_router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    svc: AccountService = Depends(get_account_service),
):
    """Create a new password account."""
    token, profile = await svc.register(body.email, body.password)
    return AuthResponse(token=token, user=ProfileRead.model_validate(profile))


# ─── Login ───────────────────────────────────────────────


@password_router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    svc: AccountService = Depends(get_account_service),
):
    """Login with email and password → fresh token."""
    token, profile = await svc.login(body.email, body.password)
    return AuthResponse(token=token, user=ProfileRead.model_validate(profile))


# ─── Verify ──────────────────────────────────────────────


@router.post("/verify", response_model=VerifyResponse)
async def verify(
    body: VerifyRequest,
    verifier: CredentialVerifier = Depends(get_verifier),
    reconciler: IdentityReconciler = Depends(get_reconciler),
):
    """Verify a credential and fetch-or-create the caller's profile."""
    claim = await verifier.verify(body.token)
    profile = await reconciler.reconcile(claim)
    return VerifyResponse(
        uid=claim.subject_id,
        email=claim.email,
        user=ProfileRead.model_validate(profile),
    )
