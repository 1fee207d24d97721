"""Database models."""

# ruff: noqa: I001 - Import order matters for SQLAlchemy relationship resolution
from sqlmodel import SQLModel

from backoffice.models.enums import InvoiceStatus, Role

# branch.py first: every other table references branches
from backoffice.models.branch import Branch
from backoffice.models.catalog import CatalogService
from backoffice.models.employee import Employee
from backoffice.models.client import Client
from backoffice.models.invoice import Invoice, InvoiceItem

__all__ = [
    "SQLModel",
    "Branch",
    "CatalogService",
    "Client",
    "Employee",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "Role",
]
