"""Enum definitions for database models."""

from enum import StrEnum

from sqlalchemy import Enum


class Role(StrEnum):
    """Employee role. Every role except ADMIN works inside a branch."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class InvoiceStatus(StrEnum):
    """Payment state of an invoice."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


ROLE_SA_ENUM = Enum(Role, name="role", values_callable=lambda e: [member.value for member in e])

INVOICE_STATUS_SA_ENUM = Enum(
    InvoiceStatus,
    name="invoicestatus",
    values_callable=lambda e: [member.value for member in e],
)
