"""Client domain exceptions."""

from backoffice.services.exceptions import NotFoundError, ValidationError


class ClientNotFound(NotFoundError):
    """Client not found."""

    pass


class DuplicateClientEmail(ValidationError):
    """Client with this email already exists."""

    pass
