"""Client database model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from backoffice.models.types import ULIDType, new_ulid, utc_now

if TYPE_CHECKING:
    from backoffice.models.branch import Branch


CUSTOMER_CODE_CONSTRAINT = UniqueConstraint("customer_code", name="uq_clients_customer_code")


class Client(SQLModel, table=True):
    """Client of a branch, subscribed to one catalog service."""

    __tablename__ = "clients"
    __table_args__ = (CUSTOMER_CODE_CONSTRAINT,)

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    customer_code: str = Field(index=True)  # "CUST-BR-004-031"

    name: str
    email: str = Field(unique=True, index=True)
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    branch_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("branches.id"), index=True, nullable=False),
    )
    service_id: str = Field(
        sa_column=Column(ULIDType, ForeignKey("catalog_services.id"), nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))

    # Relationships
    branch: "Branch" = Relationship(back_populates="clients")
