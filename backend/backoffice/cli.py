"""Command line entry point for back-office maintenance."""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TypeVar

import click
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.db import build_engine, build_session_maker, init_db
from backoffice.logging import setup_logging
from backoffice.services.branches.branch_service import BranchService
from backoffice.services.exceptions import ServiceError
from backoffice.services.identifiers import (
    SequenceAllocator,
    branch_scope,
    client_scope,
    employee_scope,
    invoice_number_scope,
    invoice_scope,
    service_scope,
)

T = TypeVar("T")

BRANCH_SCOPED_KINDS = ("employee", "client", "invoice")
KINDS = ("branch", "service", *BRANCH_SCOPED_KINDS, "invoice-number")


@asynccontextmanager
async def cli_session(database_url: str) -> AsyncGenerator[AsyncSession]:
    """Session on a fresh engine bound to the current event loop.

    Each asyncio.run() creates a new loop, so the engine is created and
    disposed per command.
    """
    engine = build_engine(database_url)
    try:
        async with build_session_maker(engine)() as session:
            yield session
    finally:
        await engine.dispose()


def run_with_session(database_url: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    async def runner() -> T:
        async with cli_session(database_url) as session:
            return await work(session)

    try:
        return asyncio.run(runner())
    except ServiceError as exc:
        message = str(exc) or (type(exc).__doc__ or type(exc).__name__).strip()
        raise click.ClickException(message) from exc


@click.group()
@click.option(
    "--database-url",
    default=lambda: settings.database_url,
    show_default="DATABASE_URL",
    help="SQLAlchemy async database URL.",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str) -> None:
    """Back-office maintenance commands."""
    setup_logging()
    ctx.obj = {"database_url": database_url}


@cli.command("init-db")
@click.pass_obj
def init_db_command(obj: dict[str, str]) -> None:
    """Create missing tables."""

    async def create() -> None:
        engine = build_engine(obj["database_url"])
        try:
            await init_db(engine)
        finally:
            await engine.dispose()

    asyncio.run(create())
    click.echo("Database initialized")


@cli.command("create-branch")
@click.argument("name")
@click.option("--address", required=True)
@click.option("--city", required=True)
@click.option("--postal-code")
@click.option("--phone")
@click.option("--email")
@click.pass_obj
def create_branch_command(
    obj: dict[str, str],
    name: str,
    address: str,
    city: str,
    postal_code: str | None,
    phone: str | None,
    email: str | None,
) -> None:
    """Create a branch and print its code."""

    async def create(session: AsyncSession) -> str:
        branch = await BranchService(session).create_branch(
            name=name,
            address=address,
            city=city,
            postal_code=postal_code,
            phone=phone,
            email=email,
        )
        return branch.branch_code

    click.echo(run_with_session(obj["database_url"], create))


@cli.command("next-id")
@click.argument("kind", type=click.Choice(KINDS))
@click.option("--branch", "branch_code", help="Branch code (BR-004) for branch-scoped kinds.")
@click.option("--date", "on", type=click.DateTime(formats=["%Y-%m-%d"]), help="Issue date for invoice kinds.")
@click.pass_obj
def next_id_command(obj: dict[str, str], kind: str, branch_code: str | None, on: datetime | None) -> None:
    """Preview the identifier the allocator would hand out now.

    Read-only: nothing is reserved, a concurrent creation may take it first.
    """
    day = on.date() if on else None

    if kind in BRANCH_SCOPED_KINDS:
        if not branch_code:
            raise click.UsageError(f"--branch is required for {kind} identifiers")
        code = branch_code

        async def preview(session: AsyncSession) -> str:
            branch = await BranchService(session).get_branch_by_code(code)
            if kind == "employee":
                scope = employee_scope(branch.branch_code)
            elif kind == "client":
                scope = client_scope(branch.branch_code)
            else:
                scope = invoice_scope(branch.branch_code, on=day)
            return await SequenceAllocator.for_session(session).allocate(scope)

    else:
        if kind == "branch":
            scope = branch_scope()
        elif kind == "service":
            scope = service_scope()
        else:
            scope = invoice_number_scope(on=day)

        async def preview(session: AsyncSession) -> str:
            return await SequenceAllocator.for_session(session).allocate(scope)

    click.echo(run_with_session(obj["database_url"], preview))
