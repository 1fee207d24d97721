"""Invoice domain exceptions."""

from backoffice.services.exceptions import NotFoundError, ValidationError


class InvoiceNotFound(NotFoundError):
    """Invoice not found."""

    pass


class ClientBranchMismatch(ValidationError):
    """Client does not belong to the specified branch."""

    pass


class DuplicateInvoiceNumber(ValidationError):
    """Invoice number already exists."""

    pass


class EmptyInvoice(ValidationError):
    """An invoice needs at least one item."""

    pass


class InvalidInvoiceItem(ValidationError):
    """Item quantity must be positive and price non-negative."""

    pass


class PaidInvoiceDeletion(ValidationError):
    """Cannot delete a paid invoice."""

    pass
