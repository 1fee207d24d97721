"""Sequential human-readable identifiers (BR-004, EMP-BR-004-012, ...).

- scopes: identifier namespaces and their prefixes
- lookup: reading identifiers already stored in a scope
- allocator: read-max, verify, retry, timestamp fallback
- persist: inserting under an allocated identifier with constraint-driven retry
"""

from backoffice.services.identifiers.allocator import SequenceAllocator
from backoffice.services.identifiers.lookup import IdentifierLookup, SqlIdentifierLookup
from backoffice.services.identifiers.persist import (
    get_insert_retrying,
    insert_with_identifier,
    is_unique_violation,
)
from backoffice.services.identifiers.scopes import (
    SequenceScope,
    branch_scope,
    branch_scoped,
    client_scope,
    employee_scope,
    invoice_number_scope,
    invoice_scope,
    service_scope,
)

__all__ = [
    "IdentifierLookup",
    "SequenceAllocator",
    "SequenceScope",
    "SqlIdentifierLookup",
    "branch_scope",
    "branch_scoped",
    "client_scope",
    "employee_scope",
    "get_insert_retrying",
    "insert_with_identifier",
    "invoice_number_scope",
    "invoice_scope",
    "is_unique_violation",
    "service_scope",
]
