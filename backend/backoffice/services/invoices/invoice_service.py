"""Invoice management service.

An invoice carries two allocated identifiers:
- invoice_code: ``INV-<branch>-<YYYYMMDD>-###``, a sequence per branch and issue day
- invoice_number: caller-supplied, or ``INV-<YYYYMM>-####``, a company-wide monthly sequence

Both are allocated before the insert and re-allocated together when the
insert loses a race on either unique constraint.
"""

from dataclasses import dataclass
from datetime import date

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from backoffice.models import Invoice, InvoiceItem, InvoiceStatus
from backoffice.models.invoice import INVOICE_CODE_CONSTRAINT, INVOICE_NUMBER_CONSTRAINT
from backoffice.models.types import is_ulid, utc_now
from backoffice.services.catalog.catalog_service import CatalogServiceService
from backoffice.services.clients.client_service import ClientService
from backoffice.services.exceptions import IdentifierConflictError
from backoffice.services.identifiers import (
    SequenceAllocator,
    branch_scoped,
    get_insert_retrying,
    invoice_number_scope,
    invoice_scope,
    is_unique_violation,
)
from backoffice.services.invoices.exceptions import (
    ClientBranchMismatch,
    DuplicateInvoiceNumber,
    EmptyInvoice,
    InvalidInvoiceItem,
    InvoiceNotFound,
    PaidInvoiceDeletion,
)
from backoffice.utils.datetime_utils import local_today

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InvoiceItemData:
    """One billed line requested by the caller."""

    service_id: str
    quantity: int
    price: float


def calculate_total_amount(items: list[InvoiceItemData]) -> float:
    return sum(item.quantity * item.price for item in items)


class InvoiceService:
    """Service for invoice creation and lookup."""

    def __init__(self, session: AsyncSession, allocator: SequenceAllocator | None = None):
        self.session = session
        self.allocator = allocator or SequenceAllocator.for_session(session)

    async def create_invoice(
        self,
        *,
        client_id: str,
        branch_id: str,
        due_date: date,
        items: list[InvoiceItemData],
        invoice_number: str | None = None,
        notes: str | None = None,
        issued_on: date | None = None,
    ) -> Invoice:
        """Create an invoice with its items in one transaction.

        Raises:
            ClientNotFound, BranchNotFound, ServiceNotFound: referenced rows are missing.
            ClientBranchMismatch: the client belongs to another branch.
            DuplicateInvoiceNumber: a supplied invoice number is already used.
            EmptyInvoice, InvalidInvoiceItem: items are unusable.
        """
        issue_day = issued_on or local_today()
        client = await ClientService(self.session, self.allocator).get_client(client_id)
        branch, code_scope = await branch_scoped(self.session, branch_id, invoice_scope, on=issue_day)
        if client.branch_id != branch.id:
            raise ClientBranchMismatch()

        if invoice_number is not None and await self._number_taken(invoice_number):
            raise DuplicateInvoiceNumber()

        if not items:
            raise EmptyInvoice()
        catalog = CatalogServiceService(self.session, self.allocator)
        for item in items:
            if item.quantity <= 0 or item.price < 0:
                raise InvalidInvoiceItem()
            await catalog.get_service(item.service_id)

        number_scope = invoice_number_scope(on=issue_day)
        total_amount = calculate_total_amount(items)

        async for attempt in get_insert_retrying():
            with attempt:
                number = invoice_number or await self.allocator.allocate(number_scope)
                code = await self.allocator.allocate(code_scope)
                invoice = Invoice(
                    invoice_code=code,
                    invoice_number=number,
                    client_id=client.id,
                    branch_id=branch.id,
                    total_amount=total_amount,
                    status=InvoiceStatus.PENDING,
                    issued_on=issue_day,
                    due_date=due_date,
                    notes=notes,
                )
                try:
                    async with self.session.begin_nested():
                        self.session.add(invoice)
                        await self.session.flush()
                except IntegrityError as exc:
                    self._raise_for_conflict(exc, code=code, number=number, supplied_number=invoice_number)
                    raise

        for item in items:
            self.session.add(
                InvoiceItem(
                    invoice_id=invoice.id,
                    service_id=item.service_id,
                    quantity=item.quantity,
                    price=item.price,
                )
            )
        await self.session.commit()

        logger.info(
            "Created invoice",
            invoice_id=invoice.id,
            invoice_code=invoice.invoice_code,
            invoice_number=invoice.invoice_number,
            total_amount=total_amount,
        )
        return await self.get_invoice(invoice.id)

    async def get_invoice(self, invoice_id: str) -> Invoice:
        """Get invoice with its items."""
        if not is_ulid(invoice_id):
            raise InvoiceNotFound()
        statement = (
            select(Invoice)
            .options(selectinload(Invoice.items))  # type: ignore[arg-type]
            .where(Invoice.id == invoice_id, Invoice.deleted_at.is_(None))  # type: ignore[union-attr]
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        invoice = result.scalars().first()
        if invoice is None:
            raise InvoiceNotFound()
        return invoice

    async def get_invoice_by_code(self, invoice_code: str) -> Invoice:
        statement = (
            select(Invoice)
            .options(selectinload(Invoice.items))  # type: ignore[arg-type]
            .where(Invoice.invoice_code == invoice_code, Invoice.deleted_at.is_(None))  # type: ignore[union-attr]
        )
        result = await self.session.execute(statement)
        invoice = result.scalars().first()
        if invoice is None:
            raise InvoiceNotFound()
        return invoice

    async def update_invoice(
        self,
        invoice_id: str,
        *,
        due_date: date | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Update the due date or notes. Code and number are fixed at creation."""
        invoice = await self.get_invoice(invoice_id)
        if due_date is not None:
            invoice.due_date = due_date
        if notes is not None:
            invoice.notes = notes
        invoice.updated_at = utc_now()
        await self.session.commit()

        logger.info("Updated invoice", invoice_id=invoice.id, invoice_code=invoice.invoice_code)
        return invoice

    async def update_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        invoice = await self.get_invoice(invoice_id)
        previous = invoice.status
        invoice.status = status
        invoice.updated_at = utc_now()
        await self.session.commit()

        logger.info(
            "Invoice status changed",
            invoice_id=invoice.id,
            invoice_code=invoice.invoice_code,
            previous_status=previous,
            status=status,
        )
        return invoice

    async def delete_invoice(self, invoice_id: str) -> Invoice:
        """Soft-delete an unpaid invoice.

        The row keeps its code and number, so neither is allocated again.

        Raises:
            PaidInvoiceDeletion: the invoice is paid.
        """
        invoice = await self.get_invoice(invoice_id)
        if invoice.status == InvoiceStatus.PAID:
            raise PaidInvoiceDeletion()
        now = utc_now()
        invoice.deleted_at = now
        invoice.updated_at = now
        await self.session.commit()

        logger.info("Deleted invoice", invoice_id=invoice.id, invoice_code=invoice.invoice_code)
        return invoice

    async def _number_taken(self, invoice_number: str) -> bool:
        """Deleted invoices still hold their number."""
        result = await self.session.execute(
            select(Invoice.id).where(Invoice.invoice_number == invoice_number).limit(1)
        )
        return result.first() is not None

    def _raise_for_conflict(
        self,
        exc: IntegrityError,
        *,
        code: str,
        number: str,
        supplied_number: str | None,
    ) -> None:
        """Translate a lost race on either identifier; other errors fall through."""
        if is_unique_violation(exc, INVOICE_NUMBER_CONSTRAINT):
            if supplied_number is not None:
                raise DuplicateInvoiceNumber() from exc
            logger.warning("Invoice number claimed concurrently, re-allocating", invoice_number=number)
            raise IdentifierConflictError(number, str(INVOICE_NUMBER_CONSTRAINT.name)) from exc
        if is_unique_violation(exc, INVOICE_CODE_CONSTRAINT):
            logger.warning("Invoice code claimed concurrently, re-allocating", invoice_code=code)
            raise IdentifierConflictError(code, str(INVOICE_CODE_CONSTRAINT.name)) from exc
