"""Sequence scopes: the identifier namespaces allocations are made in.

A scope is computed per request from caller-supplied parameters (branch code,
calendar date) and never stored. Identifiers inside a scope are
``prefix + zero-padded sequence number``, e.g. ``EMP-BR-004-012``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models import Branch, CatalogService, Client, Employee, Invoice
from backoffice.models.types import is_ulid
from backoffice.services.branches.exceptions import BranchNotFound
from backoffice.utils.datetime_utils import local_today


@dataclass(frozen=True, eq=False)
class SequenceScope:
    """Prefix plus the mapped column whose values live in this namespace."""

    prefix: str
    column: Any  # InstrumentedAttribute at runtime
    padding: int = 3

    def format(self, sequence: int) -> str:
        """Render a sequence number; padding widens once the number outgrows it."""
        return f"{self.prefix}{sequence:0{self.padding}d}"

    def parse(self, identifier: str) -> int | None:
        """Return the numeric suffix, or None if the identifier is not sequence-shaped."""
        if not identifier.startswith(self.prefix):
            return None
        suffix = identifier[len(self.prefix) :]
        if not suffix or not (suffix.isascii() and suffix.isdigit()):
            return None
        return int(suffix)


def branch_scope() -> SequenceScope:
    """Company-wide branch codes: ``BR-001``."""
    return SequenceScope("BR-", Branch.branch_code, settings.sequence_padding)


def service_scope() -> SequenceScope:
    """Company-wide catalog service codes: ``SRV-001``."""
    return SequenceScope("SRV-", CatalogService.service_code, settings.sequence_padding)


def employee_scope(branch_code: str) -> SequenceScope:
    """Employee codes within a branch: ``EMP-BR-004-001``."""
    return SequenceScope(f"EMP-{branch_code}-", Employee.employee_code, settings.sequence_padding)


def client_scope(branch_code: str) -> SequenceScope:
    """Customer codes within a branch: ``CUST-BR-004-001``."""
    return SequenceScope(f"CUST-{branch_code}-", Client.customer_code, settings.sequence_padding)


def invoice_scope(branch_code: str, on: date | None = None) -> SequenceScope:
    """Invoice codes per branch and issue day: ``INV-BR-004-20250615-001``."""
    day = on or local_today()
    return SequenceScope(f"INV-{branch_code}-{day:%Y%m%d}-", Invoice.invoice_code, settings.sequence_padding)


def invoice_number_scope(on: date | None = None) -> SequenceScope:
    """Company-wide monthly invoice numbers: ``INV-202506-0001``."""
    day = on or local_today()
    return SequenceScope(f"INV-{day:%Y%m}-", Invoice.invoice_number, settings.invoice_number_padding)


async def branch_scoped(
    session: AsyncSession,
    branch_id: str,
    factory: Callable[..., SequenceScope],
    **kwargs: Any,
) -> tuple[Branch, SequenceScope]:
    """Load the parent branch and build its scope.

    Raises BranchNotFound, also for deleted branches, before anything touches
    the identifier table.
    """
    branch = await session.get(Branch, branch_id) if is_ulid(branch_id) else None
    if branch is None or branch.deleted_at is not None:
        raise BranchNotFound()
    return branch, factory(branch.branch_code, **kwargs)
