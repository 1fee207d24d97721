"""Shared fixtures: a fresh in-memory database per test and a few seeded rows."""

import asyncio
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from backoffice.db import build_session_maker, enable_sqlite_savepoints, init_db
from backoffice.models import Branch, CatalogService, Client
from backoffice.services.branches.branch_service import BranchService
from backoffice.services.catalog.catalog_service import CatalogServiceService
from backoffice.services.clients.client_service import ClientService
from backoffice.services.exceptions import IdentifierConflictError
from backoffice.services.identifiers import SequenceAllocator, SequenceScope


class MemoryLookup:
    """IdentifierLookup over a plain set, yielding to the event loop on every read.

    ``forced_collisions`` makes the next N verifies report the candidate as taken.
    """

    def __init__(self, identifiers: tuple[str, ...] = (), forced_collisions: int = 0):
        self.identifiers = set(identifiers)
        self.forced_collisions = forced_collisions
        self.latest_calls = 0
        self.exists_calls = 0

    async def latest(self, scope: SequenceScope) -> list[str]:
        self.latest_calls += 1
        await asyncio.sleep(0)
        matching = [identifier for identifier in self.identifiers if identifier.startswith(scope.prefix)]
        return sorted(matching, key=lambda identifier: (len(identifier), identifier), reverse=True)

    async def exists(self, scope: SequenceScope, identifier: str) -> bool:
        self.exists_calls += 1
        await asyncio.sleep(0)
        if self.forced_collisions > 0:
            self.forced_collisions -= 1
            return True
        return identifier in self.identifiers

    def claim(self, identifier: str) -> None:
        """Persist an identifier, enforcing uniqueness like a unique index would."""
        if identifier in self.identifiers:
            raise IdentifierConflictError(identifier, "memory")
        self.identifiers.add(identifier)


class RecordingLookup:
    """Wraps another lookup and counts the reads made through it."""

    def __init__(self, inner: object):
        self.inner = inner
        self.calls: list[str] = []

    async def latest(self, scope: SequenceScope) -> list[str]:
        self.calls.append("latest")
        return await self.inner.latest(scope)  # type: ignore[attr-defined,no-any-return]

    async def exists(self, scope: SequenceScope, identifier: str) -> bool:
        self.calls.append("exists")
        return await self.inner.exists(scope, identifier)  # type: ignore[attr-defined,no-any-return]


class StaleFirstAllocator:
    """Returns a preset identifier once per scope, as a caller reading before a concurrent commit would.

    Later calls go to the real allocator.
    """

    def __init__(self, inner: SequenceAllocator, stale: dict[str, str]):
        self.inner = inner
        self.stale = dict(stale)
        self.handed_out: list[str] = []

    async def allocate(self, scope: SequenceScope) -> str:
        identifier = self.stale.pop(scope.prefix, None) or await self.inner.allocate(scope)
        self.handed_out.append(identifier)
        return identifier


@pytest.fixture
def statements(engine: AsyncEngine) -> list[str]:
    """SQL statements executed on the test engine from now on."""
    executed: list[str] = []

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _record(conn, cursor, statement, parameters, context, executemany):  # type: ignore[no-untyped-def]
        executed.append(statement)

    return executed


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    enable_sqlite_savepoints(engine)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    async with build_session_maker(engine)() as session:
        yield session


@pytest.fixture
async def branch(session: AsyncSession) -> Branch:
    return await BranchService(session).create_branch(name="Downtown", address="1 Main St", city="Springfield")


@pytest.fixture
async def other_branch(session: AsyncSession, branch: Branch) -> Branch:
    return await BranchService(session).create_branch(name="Harbour", address="9 Dock Rd", city="Springfield")


@pytest.fixture
async def catalog_service(session: AsyncSession) -> CatalogService:
    return await CatalogServiceService(session).create_service("Window cleaning")


@pytest.fixture
async def client(session: AsyncSession, branch: Branch, catalog_service: CatalogService) -> Client:
    return await ClientService(session).create_client(
        name="Acme Ltd",
        email="billing@acme.test",
        service_id=catalog_service.id,
        branch_id=branch.id,
    )
