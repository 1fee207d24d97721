"""Branch database model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from backoffice.models.types import ULIDType, new_ulid, utc_now

if TYPE_CHECKING:
    from backoffice.models.client import Client
    from backoffice.models.employee import Employee
    from backoffice.models.invoice import Invoice


# Authoritative uniqueness for allocated branch codes
BRANCH_CODE_CONSTRAINT = UniqueConstraint("branch_code", name="uq_branches_branch_code")


class Branch(SQLModel, table=True):
    """Company branch. Owns the scope of employee, client and invoice codes."""

    __tablename__ = "branches"
    __table_args__ = (BRANCH_CODE_CONSTRAINT,)

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )

    # "BR-004", set once at creation
    branch_code: str = Field(index=True)

    name: str
    address: str
    city: str
    postal_code: str | None = None
    phone: str | None = None
    email: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    # Soft delete; the row and its code stay in the table
    deleted_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    # Relationships
    employees: list["Employee"] = Relationship(back_populates="branch")
    clients: list["Client"] = Relationship(back_populates="branch")
    invoices: list["Invoice"] = Relationship(back_populates="branch")
