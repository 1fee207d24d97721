"""Service catalog model (the services a client can be billed for)."""

from datetime import datetime

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from backoffice.models.types import ULIDType, new_ulid, utc_now

SERVICE_CODE_CONSTRAINT = UniqueConstraint("service_code", name="uq_catalog_services_service_code")


class CatalogService(SQLModel, table=True):
    """A billable service offered by the company."""

    __tablename__ = "catalog_services"
    __table_args__ = (SERVICE_CODE_CONSTRAINT,)

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    service_code: str = Field(index=True)  # "SRV-007"
    name: str = Field(unique=True)
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
