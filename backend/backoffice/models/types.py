"""Custom SQLAlchemy types for the application."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Uuid
from sqlalchemy.types import TypeDecorator
from ulid import ULID


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def new_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def is_ulid(value: str) -> bool:
    """Check whether a string parses as a ULID (guards primary-key lookups)."""
    try:
        ULID.from_str(value)
    except ValueError:
        return False
    return True


class ULIDType(TypeDecorator[str]):
    """SQLAlchemy type that stores ULID as UUID.

    - Database: UUID on PostgreSQL, CHAR(32) elsewhere
    - Python: 26-character ULID string
    """

    impl = Uuid
    cache_ok = True

    def process_bind_param(self, value: str | ULID | None, dialect: Any) -> UUID | None:
        """Convert ULID string/object to UUID for storage."""
        if value is None:
            return None
        if isinstance(value, str):
            value = ULID.from_str(value)
        if isinstance(value, ULID):
            return value.to_uuid()
        raise ValueError(f"Cannot convert {type(value)} to ULID")

    def process_result_value(self, value: UUID | None, dialect: Any) -> str | None:
        """Convert UUID back to ULID string."""
        if value is None:
            return None
        return str(ULID.from_uuid(value))
