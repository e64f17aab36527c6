"""AuthGate CLI — run the gateway and talk to it from a terminal.

Usage:
    authgate serve                                 # Run the API with uvicorn
    authgate init-db                               # Create tables (dev bootstrap)
    authgate register a@x.com                      # Create a password account
    authgate login a@x.com                         # Get a fresh token
    authgate verify <token>                        # Verify a token → profile
    authgate profile                               # Show your profile
    authgate set-images https://img/1.png ...      # Replace profile images

Commands that need a credential read --token or AUTHGATE_TOKEN.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from authgate import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8081"


def _api_url() -> str:
    return os.environ.get("AUTHGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the AuthGate API."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token_from_ctx(token: Optional[str]) -> str:
    """Resolve the bearer token from flag or AUTHGATE_TOKEN env var."""
    tok = token or os.environ.get("AUTHGATE_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set AUTHGATE_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(r: httpx.Response) -> dict:
    """Return the JSON body, or print the API error and exit non-zero."""
    if r.is_success:
        return r.json()
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    if isinstance(detail, list):
        # FastAPI request validation errors
        detail = "; ".join(str(d.get("msg", d)) for d in detail)
    click.secho(f"Error ({r.status_code}): {detail}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_profile(user: dict) -> None:
    click.echo(f"  id:       {user['id']}")
    click.echo(f"  email:    {user['email']}")
    images = user.get("profile_images") or []
    click.echo(f"  images:   {len(images)}")
    for url in images:
        click.echo(f"            {url}")
    click.echo(f"  created:  {user['created_at']}")
    click.echo(f"  updated:  {user['updated_at']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="authgate")
def main():
    """AuthGate — authentication gateway for client applications."""


# ---------------------------------------------------------------------------
# Server commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: AUTHGATE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: AUTHGATE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from authgate.config import settings

    uvicorn.run(
        "authgate.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create the user_profiles table directly from the models.

    For production databases use `alembic upgrade head` instead.
    """
    _run(_init_db_impl())


async def _init_db_impl():
    from authgate.config import settings
    from authgate.db.engine import build_engine, init_models

    engine = build_engine(settings)
    try:
        await init_models(engine)
    finally:
        await engine.dispose()
    click.secho("Tables created.", fg="green")


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(help="Account password (prompted if omitted)")
def register(email: str, password: str):
    """Create a password account and print its token."""
    _run(_auth_impl("register", email, password))


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
def login(email: str, password: str):
    """Log in and print a fresh token."""
    _run(_auth_impl("login", email, password))


async def _auth_impl(action: str, email: str, password: str):
    async with _client() as c:
        r = await c.post(
            f"/api/v1/auth/{action}",
            json={"email": email, "password": password},
        )
        body = _check(r)

    click.secho("Registered." if action == "register" else "Logged in.", fg="green")
    _print_profile(body["user"])
    click.echo()
    click.echo(body["token"])


@main.command()
@click.argument("token")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON response")
def verify(token: str, as_json: bool):
    """Verify TOKEN and show the profile it resolves to."""
    _run(_verify_impl(token, as_json))


async def _verify_impl(token: str, as_json: bool):
    async with _client() as c:
        r = await c.post("/api/v1/auth/verify", json={"token": token})
        body = _check(r)

    if as_json:
        click.echo(_pretty_json(body))
        return
    click.secho(f"Valid token for {body['email']} ({body['uid']})", fg="green")
    _print_profile(body["user"])


# ---------------------------------------------------------------------------
# Profile commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Bearer token (or set AUTHGATE_TOKEN)")
def profile(token: Optional[str]):
    """Show the profile for the current token."""
    _run(_profile_impl(_token_from_ctx(token)))


async def _profile_impl(token: str):
    async with _client() as c:
        r = await c.get(
            "/api/v1/profile", headers={"Authorization": f"Bearer {token}"}
        )
        body = _check(r)
    _print_profile(body)


@main.command("set-images")
@click.argument("urls", nargs=-1)
@click.option("--token", help="Bearer token (or set AUTHGATE_TOKEN)")
def set_images(urls: tuple[str, ...], token: Optional[str]):
    """Replace profile images with URLS (none clears them)."""
    _run(_set_images_impl(_token_from_ctx(token), list(urls)))


async def _set_images_impl(token: str, urls: list[str]):
    async with _client() as c:
        r = await c.put(
            "/api/v1/profile",
            json={"profile_images": urls},
            headers={"Authorization": f"Bearer {token}"},
        )
        body = _check(r)
    click.secho("Profile updated.", fg="green")
    _print_profile(body)


if __name__ == "__main__":
    main()
