"""Cão-Guia admin CLI.

Usage:
    caoguia gen-secret                      # Print a random JWT signing secret
    caoguia init-db                         # Create tables on the configured database
    caoguia create-admin -n Ana -e a@x.org  # Bootstrap an administrator account
"""

from __future__ import annotations

import asyncio
import base64
import concurrent.futures
import secrets
import sys

import click

from caoguia import __version__


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when an event loop is already running (e.g. tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


@click.group()
@click.version_option(version=__version__, prog_name="caoguia")
def main():
    """Cão-Guia administration commands."""


@main.command("gen-secret")
@click.option("--length", "-l", default=64, show_default=True, help="Random bytes")
def gen_secret(length: int):
    """Print a base64 secret suitable for CAOGUIA_JWT_SECRET."""
    if length < 32:
        click.secho("Error: use at least 32 bytes for an HS256 secret", fg="red", err=True)
        sys.exit(1)
    click.echo(base64.b64encode(secrets.token_bytes(length)).decode("ascii"))


@main.command("init-db")
def init_db():
    """Create all tables (development / first deploy)."""
    _run(_init_db_impl())
    click.secho("Database tables created.", fg="green")


async def _init_db_impl():
    from caoguia.db.engine import engine
    from caoguia.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@main.command("create-admin")
@click.option("--name", "-n", required=True, help="Display name")
@click.option("--email", "-e", required=True, help="Login email")
@click.password_option(help="Login password (prompted if omitted)")
def create_admin(name: str, email: str, password: str):
    """Create an administrator. Admins log in through /auth/login."""
    from caoguia.services.account_service import DuplicateRecordError

    try:
        admin_id = _run(_create_admin_impl(name, email, password))
    except DuplicateRecordError:
        click.secho(f"Error: {email} is already registered", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Admin created with id {admin_id}", fg="green")


async def _create_admin_impl(name: str, email: str, password: str) -> int:
    from caoguia.db.engine import async_session_factory, engine
    from caoguia.services.account_service import AccountService

    try:
        async with async_session_factory() as session:
            admin = await AccountService(session).create_admin(name, email, password)
            return admin.id
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()
