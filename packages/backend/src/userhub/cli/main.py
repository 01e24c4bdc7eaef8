"""UserHub CLI — out-of-band administration.

Usage:
    userhub init-db                                   # Create tables from the models
    userhub create-admin --email admin@userhub.com    # Provision an admin account
    userhub users --page 1 --limit 20                 # List accounts
    userhub serve                                     # Run the API with uvicorn

Admin accounts can only be created here: the HTTP API never assigns
the admin role.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import click

from userhub import __version__
from userhub.config import settings
from userhub.errors import UserHubError
from userhub.repositories.base import UserRepository
from userhub.schemas.user import password_policy_violations, validate_email
from userhub.services.auth_service import AuthService
from userhub.services.user_service import UserService

DEFAULT_ADMIN_EMAIL = "admin@userhub.com"
DEFAULT_ADMIN_NAME = "System Administrator"


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
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


@asynccontextmanager
async def _repository() -> AsyncIterator[UserRepository]:
    """A user store on its own DB session, disposed of afterwards."""
    from userhub.db.engine import async_session_factory, engine
    from userhub.repositories.sqlalchemy_repo import SqlAlchemyUserRepository

    try:
        async with async_session_factory() as session:
            yield SqlAlchemyUserRepository(session)
    finally:
        await engine.dispose()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) or "—")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="userhub")
def main():
    """UserHub — user management service administration."""


# ---------------------------------------------------------------------------
# userhub init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create database tables (use Alembic migrations in production)."""
    _run(_init_db_impl())
    click.secho("Database schema created.", fg="green")


async def _init_db_impl():
    from userhub.db.engine import create_schema, engine

    try:
        await create_schema()
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# userhub create-admin
# ---------------------------------------------------------------------------


@main.command("create-admin")
@click.option("--email", default=DEFAULT_ADMIN_EMAIL, show_default=True)
@click.option("--full-name", default=DEFAULT_ADMIN_NAME, show_default=True)
@click.password_option("--password", help="Admin password (prompted if omitted)")
def create_admin(email: str, full_name: str, password: str):
    """Provision an admin account (no-op if the email already exists)."""
    try:
        email = validate_email(email)
    except ValueError as e:
        _fail(str(e))
    problems = password_policy_violations(password)
    if problems:
        _fail(", ".join(problems))

    try:
        user, created = _run(_create_admin_impl(email, password, full_name))
    except UserHubError as e:
        _fail(e.message)

    if created:
        click.secho("Admin user created successfully!", fg="green")
    else:
        click.secho("Admin user already exists", fg="yellow")
    click.echo(f"  Email: {user.email}")
    click.echo(f"  Role:  {user.role.value}")


async def _create_admin_impl(email: str, password: str, full_name: str):
    async with _repository() as repo:
        return await AuthService(repo).provision_admin(email, password, full_name)


# ---------------------------------------------------------------------------
# userhub users
# ---------------------------------------------------------------------------


@main.command()
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1))
@click.option(
    "--limit",
    default=settings.default_page_size,
    show_default=True,
    type=click.IntRange(1, settings.max_page_size),
)
def users(page: int, limit: int):
    """List user accounts, newest first."""
    result = _run(_users_impl(page, limit))
    p = result.pagination

    if not result.users:
        click.echo("No users found.")
        return

    rows = [
        {
            "id": str(u.id)[:8],
            "email": u.email,
            "name": u.full_name,
            "role": u.role.value,
            "status": click.style(
                u.status.value, fg="green" if u.status.value == "active" else "red"
            ),
            "last_login": u.last_login.strftime("%Y-%m-%d %H:%M") if u.last_login else None,
        }
        for u in result.users
    ]
    _print_table(rows, [
        ("ID", "id", 8),
        ("EMAIL", "email", 32),
        ("NAME", "name", 24),
        ("ROLE", "role", 6),
        ("STATUS", "status", 17),
        ("LAST LOGIN", "last_login", 16),
    ])
    click.echo()
    click.echo(
        f"Page {p.page}/{max(p.pages, 1)} — {p.total} users"
        + (" (more available)" if p.has_more else "")
    )


async def _users_impl(page: int, limit: int):
    async with _repository() as repo:
        return await UserService(repo).list_users(page=page, limit=limit)


# ---------------------------------------------------------------------------
# userhub serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=settings.host, show_default=True)
@click.option("--port", default=settings.port, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (dev)")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("userhub.main:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
