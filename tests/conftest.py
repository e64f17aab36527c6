"""Test fixtures — a fresh app and database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite file under tmp_path (aiosqlite driver),
   with tables created straight from the models.
2. create_app() takes explicit Settings and an engine, so the app under
   test is wired to that throwaway database — no globals to patch.
3. bcrypt runs with the minimum cost (4 rounds) to keep the suite fast.

SQLite enforces the same primary-key and unique-email constraints as
PostgreSQL, which is all the concurrency tests rely on.
"""

from typing import Any, Mapping

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from authgate.auth.jwt import SelfIssuedVerifier, TokenIssuer
from authgate.auth.provider import ProviderDelegatedVerifier
from authgate.config import Settings
from authgate.db.engine import build_session_factory, init_models
from authgate.main import create_app
from authgate.services.profile_store import ProfileStore
from authgate.services.reconciler import IdentityReconciler

TEST_SECRET = "test-signing-secret-" + "0123456789abcdef" * 4
PROVIDER_PROJECT = "authgate-test"


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'authgate.db'}",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


class FakeProviderClient:
    """Stands in for the external identity provider.

    Maps token strings to claim sets; unknown tokens fail like a real
    provider would.
    """

    def __init__(self, tokens: Mapping[str, Mapping[str, Any]] | None = None):
        self.tokens = dict(tokens or {})
        self.calls: list[str] = []

    async def verify_id_token(self, token: str) -> Mapping[str, Any]:
        self.calls.append(token)
        if token not in self.tokens:
            raise ValueError("token rejected by provider")
        return self.tokens[token]


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture()
async def engine(settings):
    engine = create_async_engine(
        settings.database_url, connect_args={"timeout": 30}
    )
    await init_models(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def store(engine) -> ProfileStore:
    return ProfileStore(build_session_factory(engine), timeout=10.0)


@pytest.fixture()
def reconciler(store) -> IdentityReconciler:
    return IdentityReconciler(store)


@pytest.fixture()
def issuer(settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


@pytest.fixture()
def verifier(settings) -> SelfIssuedVerifier:
    return SelfIssuedVerifier.from_settings(settings)


@pytest.fixture()
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client for the self-issued strategy app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def provider_client() -> FakeProviderClient:
    return FakeProviderClient()


@pytest_asyncio.fixture()
async def provider_app_client(tmp_path, engine, provider_client):
    """HTTP client for a provider-strategy app backed by FakeProviderClient.

    Learn: create_app() builds the real Firebase client from settings; we
    swap the verifier on app.state so no network call is ever made.
    """
    settings = make_settings(
        tmp_path,
        credential_strategy="provider",
        identity_provider_project_id=PROVIDER_PROJECT,
    )
    app = create_app(settings, engine=engine)
    app.state.verifier = ProviderDelegatedVerifier(provider_client, timeout=2.0)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
