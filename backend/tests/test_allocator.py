"""Allocator behaviour against an in-memory identifier store."""

import asyncio
import re

import pytest
from conftest import MemoryLookup

from backoffice.services.exceptions import IdentifierConflictError
from backoffice.services.identifiers import SequenceAllocator, SequenceScope, get_insert_retrying

SCOPE = SequenceScope("BR-", None, padding=3)
EMPLOYEE_SCOPE = SequenceScope("EMP-BR-004-", None, padding=3)

FIXED_CLOCK = 1718000123.5  # 1718000123500 ms


async def test_empty_scope_starts_at_one() -> None:
    allocator = SequenceAllocator(MemoryLookup())

    assert await allocator.allocate(SCOPE) == "BR-001"
    assert await allocator.allocate(EMPLOYEE_SCOPE) == "EMP-BR-004-001"


async def test_next_after_existing_maximum() -> None:
    lookup = MemoryLookup(tuple(f"BR-{n:03d}" for n in range(1, 8)))
    allocator = SequenceAllocator(lookup)

    assert await allocator.allocate(SCOPE) == "BR-008"
    assert lookup.exists_calls == 1


async def test_gaps_are_not_filled() -> None:
    allocator = SequenceAllocator(MemoryLookup(("BR-001", "BR-005")))

    assert await allocator.allocate(SCOPE) == "BR-006"


async def test_other_scopes_are_ignored() -> None:
    lookup = MemoryLookup(("EMP-BR-004-003", "EMP-BR-005-019"))
    allocator = SequenceAllocator(lookup)

    assert await allocator.allocate(EMPLOYEE_SCOPE) == "EMP-BR-004-004"


async def test_sequence_grows_past_padding() -> None:
    allocator = SequenceAllocator(MemoryLookup(("BR-998", "BR-999")))
    assert await allocator.allocate(SCOPE) == "BR-1000"

    allocator = SequenceAllocator(MemoryLookup(("BR-999", "BR-1000")))
    assert await allocator.allocate(SCOPE) == "BR-1001"


async def test_non_numeric_suffix_is_skipped() -> None:
    allocator = SequenceAllocator(MemoryLookup(("BR-ABC", "BR-004")))

    assert await allocator.latest_sequence(SCOPE) == 4
    assert await allocator.allocate(SCOPE) == "BR-005"


@pytest.mark.parametrize("collisions", [1, 4, 9])
async def test_retries_until_verify_succeeds(collisions: int) -> None:
    lookup = MemoryLookup(("BR-002",), forced_collisions=collisions)
    allocator = SequenceAllocator(lookup, max_attempts=10)

    assert await allocator.allocate(SCOPE) == "BR-003"
    assert lookup.exists_calls == collisions + 1
    assert lookup.latest_calls == collisions + 1


async def test_exhausted_retries_fall_back_to_timestamp() -> None:
    lookup = MemoryLookup(("BR-002",), forced_collisions=10)
    allocator = SequenceAllocator(lookup, max_attempts=10, clock=lambda: FIXED_CLOCK)

    identifier = await allocator.allocate(SCOPE)

    assert identifier == "BR-123500"
    assert re.fullmatch(r"BR-\d{6}", identifier)
    assert lookup.exists_calls == 10


async def test_fallback_keeps_leading_zeros() -> None:
    allocator = SequenceAllocator(MemoryLookup(), clock=lambda: 1700000.5)

    assert allocator.fallback_identifier(EMPLOYEE_SCOPE) == "EMP-BR-004-000500"


def test_max_attempts_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SequenceAllocator(MemoryLookup(), max_attempts=0)


async def test_concurrent_allocations_end_up_distinct() -> None:
    lookup = MemoryLookup()
    allocator = SequenceAllocator(lookup)

    async def create() -> str:
        async for attempt in get_insert_retrying(max_attempts=100):
            with attempt:
                identifier = await allocator.allocate(SCOPE)
                await asyncio.sleep(0)
                lookup.claim(identifier)
                return identifier
        raise AssertionError("unreachable")

    identifiers = await asyncio.gather(*(create() for _ in range(20)))

    assert len(set(identifiers)) == 20
    assert lookup.identifiers == set(identifiers)


async def test_allocation_reserves_nothing() -> None:
    """Without a claim in between, concurrent callers are handed the same candidate."""
    lookup = MemoryLookup(("BR-001",))
    allocator = SequenceAllocator(lookup)

    first, second = await asyncio.gather(allocator.allocate(SCOPE), allocator.allocate(SCOPE))
    assert first == second == "BR-002"

    lookup.claim(first)
    with pytest.raises(IdentifierConflictError):
        lookup.claim(second)
    assert await allocator.allocate(SCOPE) == "BR-003"
