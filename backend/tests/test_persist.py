"""Insert retry driven by the identifier's unique constraint."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models import Branch, Employee, Role
from backoffice.models.branch import BRANCH_CODE_CONSTRAINT
from backoffice.models.employee import EMPLOYEE_CODE_CONSTRAINT
from backoffice.services.exceptions import IdentifierConflictError
from backoffice.services.identifiers import (
    SequenceScope,
    branch_scope,
    employee_scope,
    insert_with_identifier,
    is_unique_violation,
)


class QueuedAllocator:
    """Hands out pre-set identifiers, repeating the last one when the queue runs dry."""

    def __init__(self, *identifiers: str):
        self.identifiers = list(identifiers)
        self.calls = 0

    async def allocate(self, scope: SequenceScope) -> str:
        self.calls += 1
        if len(self.identifiers) > 1:
            return self.identifiers.pop(0)
        return self.identifiers[0]


def _branch(code: str) -> Branch:
    return Branch(branch_code=code, name="Downtown", address="1 Main St", city="Springfield")


async def _branch_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Branch))
    return int(result.scalar_one())


async def test_lost_race_is_reallocated(session: AsyncSession) -> None:
    session.add(_branch("BR-001"))
    await session.commit()
    allocator = QueuedAllocator("BR-001", "BR-002")

    branch = await insert_with_identifier(session, allocator, branch_scope(), _branch, BRANCH_CODE_CONSTRAINT)
    await session.commit()

    assert branch.branch_code == "BR-002"
    assert allocator.calls == 2
    assert await _branch_count(session) == 2


async def test_conflict_surfaces_after_retry_budget(session: AsyncSession) -> None:
    session.add(_branch("BR-001"))
    await session.commit()
    allocator = QueuedAllocator("BR-001")

    with pytest.raises(IdentifierConflictError) as exc_info:
        await insert_with_identifier(session, allocator, branch_scope(), _branch, BRANCH_CODE_CONSTRAINT)

    assert exc_info.value.identifier == "BR-001"
    assert exc_info.value.constraint == "uq_branches_branch_code"
    assert allocator.calls == 3
    # Savepoints were rolled back; the session is still usable
    assert await _branch_count(session) == 1


async def test_other_integrity_errors_propagate(session: AsyncSession) -> None:
    session.add(Employee(email="dup@x.test", name="First", role=Role.EMPLOYEE, employee_code="EMP-BR-001-001"))
    await session.commit()
    allocator = QueuedAllocator("EMP-BR-001-002")

    with pytest.raises(IntegrityError):
        await insert_with_identifier(
            session,
            allocator,
            employee_scope("BR-001"),
            lambda code: Employee(email="dup@x.test", name="Second", role=Role.EMPLOYEE, employee_code=code),
            EMPLOYEE_CODE_CONSTRAINT,
        )
    assert allocator.calls == 1


def _integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, Exception(message))


def test_detects_postgres_constraint_name() -> None:
    exc = _integrity_error('duplicate key value violates unique constraint "uq_branches_branch_code"')

    assert is_unique_violation(exc, BRANCH_CODE_CONSTRAINT)
    assert not is_unique_violation(exc, EMPLOYEE_CODE_CONSTRAINT)


def test_detects_sqlite_column_list() -> None:
    exc = _integrity_error("UNIQUE constraint failed: employees.employee_code")

    assert is_unique_violation(exc, EMPLOYEE_CODE_CONSTRAINT)
    assert not is_unique_violation(exc, BRANCH_CODE_CONSTRAINT)


def test_ignores_other_columns() -> None:
    exc = _integrity_error("UNIQUE constraint failed: employees.email")

    assert not is_unique_violation(exc, EMPLOYEE_CODE_CONSTRAINT)
