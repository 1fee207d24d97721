"""Read side of the allocator: finding identifiers already in use."""

from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.services.identifiers.scopes import SequenceScope


class IdentifierLookup(Protocol):
    """Where the allocator reads existing identifiers from."""

    async def latest(self, scope: SequenceScope) -> list[str]:
        """Identifiers in scope, greatest sequence first."""
        ...

    async def exists(self, scope: SequenceScope, identifier: str) -> bool:
        """Whether this exact identifier is already stored."""
        ...


class SqlIdentifierLookup:
    """IdentifierLookup backed by the scope's mapped column.

    Ordering is by length, then value, so ``BR-1000`` still sorts above
    ``BR-999`` once a sequence outgrows its zero padding.
    """

    # Rows fetched per lookup; non-numeric suffixes are skipped within this window
    window = 20

    def __init__(self, session: AsyncSession):
        self.session = session

    async def latest(self, scope: SequenceScope) -> list[str]:
        column = scope.column
        statement = (
            select(column)
            .where(column.startswith(scope.prefix, autoescape=True))
            .order_by(func.length(column).desc(), column.desc())
            .limit(self.window)
        )
        result = await self.session.execute(statement)
        return [value for value in result.scalars().all() if value is not None]

    async def exists(self, scope: SequenceScope, identifier: str) -> bool:
        statement = select(scope.column).where(scope.column == identifier).limit(1)
        result = await self.session.execute(statement)
        return result.first() is not None
