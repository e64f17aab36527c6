"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. All shared collaborators are constructed here, exactly once:

    engine → session factory → ProfileStore → IdentityReconciler
    Settings → CredentialVerifier (strategy chosen by config)
    Settings → TokenIssuer → AccountService

and parked on app.state for the route dependencies. Lifespan only logs
startup and disposes the connection pool on shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from authgate import __version__
from authgate.api import build_api_router
from authgate.api.errors import setup_exception_handlers
from authgate.auth.jwt import TokenIssuer
from authgate.auth.verifier import build_verifier
from authgate.config import Settings
from authgate.config import settings as default_settings
from authgate.db.engine import build_engine, build_session_factory
from authgate.middleware.request_id import RequestIdMiddleware
from authgate.middleware.security import SecurityHeadersMiddleware
from authgate.services.account_service import AccountService
from authgate.services.profile_store import ProfileStore
from authgate.services.reconciler import IdentityReconciler

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "authgate.starting",
        version=__version__,
        environment=settings.environment,
        strategy=settings.credential_strategy,
        port=settings.port,
    )

    yield

    logger.info("authgate.shutdown")
    await app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings
    engine = engine or build_engine(settings)

    app = FastAPI(
        title="AuthGate",
        description="Authentication gateway — credential verification and user profiles",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Collaborators ─────────────────────────────────────
    store = ProfileStore(
        build_session_factory(engine), timeout=settings.store_timeout_seconds
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.store = store
    app.state.verifier = build_verifier(settings)
    app.state.reconciler = IdentityReconciler(store)
    app.state.accounts = AccountService(
        store,
        TokenIssuer.from_settings(settings),
        password_min_length=settings.password_min_length,
        bcrypt_rounds=settings.bcrypt_rounds,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)
    app.include_router(build_api_router(settings.credential_strategy))

    return app


# Default app instance (used by uvicorn: authgate.main:app)
app = create_app()
