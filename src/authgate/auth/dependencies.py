"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. Collaborators (store,
verifier, reconciler, account service) are built once by create_app() and
parked on app.state; the getters below just hand them out. Tests build an
app with their own collaborators instead of patching globals.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authgate.auth.verifier import CredentialVerifier, IdentityClaim
from authgate.errors import VerificationError
from authgate.services.account_service import AccountService
from authgate.services.profile_store import ProfileStore
from authgate.services.reconciler import IdentityReconciler

# auto_error=False: a missing header becomes our own VerificationError,
# so it gets the same 401 body as a bad token.
_bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> ProfileStore:
    return request.app.state.store


def get_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.verifier


def get_reconciler(request: Request) -> IdentityReconciler:
    return request.app.state.reconciler


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


async def get_current_claim(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> IdentityClaim:
    """Verify the Bearer token on the request (401 if absent or invalid)."""
    if credentials is None:
        raise VerificationError("Authentication required")
    return await verifier.verify(credentials.credentials)
