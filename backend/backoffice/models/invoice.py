"""Invoice and InvoiceItem database models."""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from backoffice.models.enums import INVOICE_STATUS_SA_ENUM, InvoiceStatus
from backoffice.models.types import ULIDType, new_ulid, utc_now

if TYPE_CHECKING:
    from backoffice.models.branch import Branch


INVOICE_CODE_CONSTRAINT = UniqueConstraint("invoice_code", name="uq_invoices_invoice_code")
INVOICE_NUMBER_CONSTRAINT = UniqueConstraint("invoice_number", name="uq_invoices_invoice_number")


class Invoice(SQLModel, table=True):
    """Invoice issued by a branch to one of its clients."""

    __tablename__ = "invoices"
    __table_args__ = (INVOICE_CODE_CONSTRAINT, INVOICE_NUMBER_CONSTRAINT)

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )

    # "INV-BR-004-20250615-003", sequence per branch and issue day
    invoice_code: str = Field(index=True)
    # Caller-supplied, or "INV-202506-0042" (company-wide monthly sequence)
    invoice_number: str = Field(index=True)

    client_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("clients.id"), index=True, nullable=False),
    )
    branch_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("branches.id"), index=True, nullable=False),
    )
    total_amount: float
    status: InvoiceStatus = Field(
        default=InvoiceStatus.PENDING,
        sa_column=Column(INVOICE_STATUS_SA_ENUM, nullable=False),
    )
    issued_on: date
    due_date: date
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    # Soft delete; the row and its code stay in the table
    deleted_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    # Relationships
    branch: "Branch" = Relationship(back_populates="invoices")
    items: list["InvoiceItem"] = Relationship(back_populates="invoice")


class InvoiceItem(SQLModel, table=True):
    """Billed line of an invoice."""

    __tablename__ = "invoice_items"

    id: int | None = Field(default=None, primary_key=True)
    invoice_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False),
    )
    service_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("catalog_services.id"), nullable=False),
    )
    quantity: int
    price: float

    # Relationships
    invoice: Invoice = Relationship(back_populates="items")
