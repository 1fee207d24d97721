"""Employee database model."""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from backoffice.models.enums import ROLE_SA_ENUM, Role
from backoffice.models.types import ULIDType, new_ulid, utc_now

if TYPE_CHECKING:
    from backoffice.models.branch import Branch


EMPLOYEE_CODE_CONSTRAINT = UniqueConstraint("employee_code", name="uq_employees_employee_code")


class Employee(SQLModel, table=True):
    """Employee record. Admins may exist outside any branch and carry no code."""

    __tablename__ = "employees"
    __table_args__ = (EMPLOYEE_CODE_CONSTRAINT,)

    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )

    # "EMP-BR-004-012"; None for admins without a branch
    employee_code: str | None = Field(default=None, index=True)

    email: str = Field(unique=True, index=True)
    name: str
    phone: str | None = None
    national_id: str | None = Field(default=None, unique=True)
    role: Role = Field(
        default=Role.EMPLOYEE,
        sa_column=Column(ROLE_SA_ENUM, nullable=False),
    )
    branch_id: str | None = Field(
        default=None,
        sa_column=Column(ULIDType, ForeignKey("branches.id", ondelete="SET NULL"), index=True, nullable=True),
    )
    date_of_birth: date | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))

    # Relationships
    branch: "Branch" = Relationship(back_populates="employees")
