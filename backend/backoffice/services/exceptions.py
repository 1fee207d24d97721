"""Base service exceptions.

These exceptions are raised by the service layer and should be caught
by whatever outer surface (CLI, API) wraps it and converted to an
appropriate response.
"""


class ServiceError(Exception):
    """Base service exception."""

    pass


class NotFoundError(ServiceError):
    """Resource not found."""

    pass


class ValidationError(ServiceError):
    """Validation error."""

    pass


class IdentifierConflictError(ServiceError):
    """An insert lost the race for an allocated identifier.

    Raised when the unique constraint guarding an allocated identifier column
    rejects the row. Creation flows retry on it and surface it only after
    their retry budget is spent.
    """

    def __init__(self, identifier: str, constraint: str):
        self.identifier = identifier
        self.constraint = constraint
        super().__init__(f"Identifier {identifier} already taken (constraint: {constraint})")
