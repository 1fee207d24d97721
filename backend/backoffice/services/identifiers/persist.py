"""Insert an entity under a freshly allocated identifier, retrying lost races."""

from collections.abc import Callable
from typing import Protocol, TypeVar

import structlog
from sqlalchemy import UniqueConstraint
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from backoffice.config import settings
from backoffice.services.exceptions import IdentifierConflictError
from backoffice.services.identifiers.scopes import SequenceScope

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Allocator(Protocol):
    async def allocate(self, scope: SequenceScope) -> str: ...


def get_insert_retrying(max_attempts: int | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for IdentifierConflictError.

    Usage:
        async for attempt in get_insert_retrying():
            with attempt:
                ...  # allocate + insert, raising IdentifierConflictError on a lost race

    No wait between attempts: the next allocation re-reads the scope and
    moves past the identifier that was just taken.
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(IdentifierConflictError),
        stop=stop_after_attempt(max_attempts or settings.insert_max_attempts),
        reraise=True,
    )


def is_unique_violation(exc: IntegrityError, constraint: UniqueConstraint) -> bool:
    """Check whether an IntegrityError was raised by this particular constraint.

    PostgreSQL names the constraint; SQLite lists the ``table.column`` pairs.
    """
    message = str(exc.orig if exc.orig is not None else exc).lower()
    if constraint.name and f'"{str(constraint.name).lower()}"' in message:
        return True
    if "unique constraint failed" in message:
        table = constraint.table.name
        columns = [f"{table}.{column.name}".lower() for column in constraint.columns]
        return bool(columns) and all(column in message for column in columns)
    return False


async def insert_with_identifier(
    session: AsyncSession,
    allocator: Allocator,
    scope: SequenceScope,
    build: Callable[[str], T],
    constraint: UniqueConstraint,
) -> T:
    """Allocate an identifier, build the entity with it and flush it in a savepoint.

    A unique violation on ``constraint`` rolls the savepoint back and starts
    over with a new allocation; other integrity errors propagate unchanged.
    The caller commits.

    Raises:
        IdentifierConflictError: every attempt lost the race.
    """
    async for attempt in get_insert_retrying():
        with attempt:
            identifier = await allocator.allocate(scope)
            entity = build(identifier)
            try:
                async with session.begin_nested():
                    session.add(entity)
                    await session.flush()
            except IntegrityError as exc:
                if not is_unique_violation(exc, constraint):
                    raise
                logger.warning(
                    "Identifier claimed by a concurrent insert, re-allocating",
                    scope=scope.prefix,
                    identifier=identifier,
                    attempt=attempt.retry_state.attempt_number,
                    constraint=constraint.name,
                )
                raise IdentifierConflictError(identifier, str(constraint.name)) from exc
            return entity

    raise AssertionError("unreachable: AsyncRetrying either returns or reraises")
