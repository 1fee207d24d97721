"""Sequential human-readable identifier allocation with collision retry."""

import time
from collections.abc import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.services.identifiers.lookup import IdentifierLookup, SqlIdentifierLookup
from backoffice.services.identifiers.scopes import SequenceScope

logger = structlog.get_logger(__name__)


class SequenceAllocator:
    """Mint the next identifier in a scope without reserving it.

    Each attempt reads the greatest identifier in the scope, proposes the
    next sequence number and re-reads by exact match to see whether a
    concurrent caller stored it in the meantime. A lost race starts the next
    attempt. Once ``max_attempts`` are spent the allocator gives up on
    ordering and returns ``prefix`` plus the last ``fallback_digits`` digits
    of the millisecond clock; it never raises on contention.

    Nothing is locked: two callers can still receive the same identifier.
    The unique constraint on the owning table is the final arbiter, and
    creation flows retry the insert when it fires (see persist.py).

    Usage:
        allocator = SequenceAllocator.for_session(session)
        code = await allocator.allocate(branch_scope())
    """

    def __init__(
        self,
        lookup: IdentifierLookup,
        *,
        max_attempts: int = 10,
        fallback_digits: int = 6,
        clock: Callable[[], float] = time.time,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.lookup = lookup
        self.max_attempts = max_attempts
        self.fallback_digits = fallback_digits
        self.clock = clock

    @classmethod
    def for_session(cls, session: AsyncSession) -> "SequenceAllocator":
        """Allocator reading through the given session, tuned from settings."""
        return cls(
            SqlIdentifierLookup(session),
            max_attempts=settings.sequence_max_attempts,
            fallback_digits=settings.sequence_fallback_digits,
        )

    async def allocate(self, scope: SequenceScope) -> str:
        """Return an identifier not stored in ``scope`` at the time of the check."""
        for attempt in range(1, self.max_attempts + 1):
            candidate = scope.format(await self.latest_sequence(scope) + 1)
            if not await self.is_taken(scope, candidate):
                logger.debug("Allocated identifier", scope=scope.prefix, identifier=candidate, attempt=attempt)
                return candidate

            logger.warning(
                "Identifier taken before it could be verified, retrying",
                scope=scope.prefix,
                identifier=candidate,
                attempt=attempt,
                max_attempts=self.max_attempts,
            )

        fallback = self.fallback_identifier(scope)
        logger.warning(
            "Sequence retries exhausted, using timestamp identifier",
            scope=scope.prefix,
            identifier=fallback,
            max_attempts=self.max_attempts,
        )
        return fallback

    async def latest_sequence(self, scope: SequenceScope) -> int:
        """Greatest sequence number stored in ``scope``, or 0 if there is none."""
        for identifier in await self.lookup.latest(scope):
            sequence = scope.parse(identifier)
            if sequence is not None:
                return sequence
            logger.warning("Skipping identifier without numeric suffix", scope=scope.prefix, identifier=identifier)
        return 0

    async def is_taken(self, scope: SequenceScope, identifier: str) -> bool:
        return await self.lookup.exists(scope, identifier)

    def fallback_identifier(self, scope: SequenceScope) -> str:
        """Non-sequential identifier from the wall clock (milliseconds)."""
        millis = int(self.clock() * 1000)
        suffix = millis % 10**self.fallback_digits
        return f"{scope.prefix}{suffix:0{self.fallback_digits}d}"
