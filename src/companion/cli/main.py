"""MyLife Companion admin CLI — database setup and user management.

Usage:
    companion init-db                                   # Create all tables
    companion create-admin alice alice@example.com      # Prompts for a password
    companion list-users                                # Users, roles, status
    companion serve --reload                            # Run the API with uvicorn

Commands talk to the database named by COMPANION_DATABASE_URL directly;
the API server does not need to be running.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from companion import __version__
from companion.auth.password import hash_password
from companion.config import settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

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


def _status_color(status: str) -> str:
    colors = {
        "active": "green",
        "inactive": "yellow",
        "suspended": "red",
    }
    return colors.get(status, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="companion")
def main():
    """MyLife Companion — backend administration."""


# ---------------------------------------------------------------------------
# companion init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create any missing tables from the models.

    Use `alembic upgrade head` instead on databases managed by migrations.
    """
    _run(_init_db_impl())
    click.secho("Database tables created.", fg="green")


async def _init_db_impl():
    from companion.db.engine import engine
    from companion.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


# ---------------------------------------------------------------------------
# companion create-admin
# ---------------------------------------------------------------------------


@main.command("create-admin")
@click.argument("username")
@click.argument("email")
@click.option(
    "--password", "-p",
    prompt=True, hide_input=True, confirmation_prompt=True,
    help="Admin password (prompted when omitted)",
)
def create_admin(username: str, email: str, password: str):
    """Create an active user with the admin role."""
    if len(password) < 6:
        click.secho("Password must be at least 6 characters.", fg="red", err=True)
        sys.exit(1)
    user_id = _run(_create_admin_impl(username, email.lower(), password))
    if user_id is None:
        click.secho("A user with that username or email already exists.", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Admin {username} created (id {user_id}).", fg="green")


async def _create_admin_impl(username: str, email: str, password: str):
    from companion.db.engine import async_session_factory, engine
    from companion.db.models import User

    try:
        async with async_session_factory() as db:
            existing = await db.execute(
                select(User).where(or_(User.username == username, User.email == email))
            )
            if existing.scalars().first() is not None:
                return None
            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role="admin",
                status="active",
            )
            db.add(user)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                return None
            return user.id
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# companion list-users
# ---------------------------------------------------------------------------


@main.command("list-users")
@click.option("--role", "-r", type=click.Choice(["user", "admin"]), help="Filter by role")
def list_users(role: str | None):
    """List accounts with their role and status."""
    rows = _run(_list_users_impl(role))
    if not rows:
        click.echo("No users found.")
        return

    _print_table(rows, [
        ("ID", "id", 6),
        ("USERNAME", "username", 20),
        ("EMAIL", "email", 30),
        ("ROLE", "role", 6),
        ("STATUS", "status", 10),
        ("LAST LOGIN", "last_login", 19),
    ])
    click.echo()
    suspended = [r for r in rows if r["status"] != "active"]
    for r in suspended:
        click.secho(f"  {r['username']} is {r['status']}", fg=_status_color(r["status"]))


async def _list_users_impl(role: str | None) -> list[dict]:
    from companion.db.engine import async_session_factory, engine
    from companion.db.models import User

    try:
        async with async_session_factory() as db:
            query = select(User).order_by(User.id)
            if role:
                query = query.where(User.role == role)
            result = await db.execute(query)
            return [
                {
                    "id": u.id,
                    "username": u.username,
                    "email": u.email,
                    "role": u.role,
                    "status": u.status,
                    "last_login": u.last_login.strftime("%Y-%m-%d %H:%M:%S")
                    if u.last_login else None,
                }
                for u in result.scalars().all()
            ]
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# companion serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: COMPANION_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: COMPANION_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "companion.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
