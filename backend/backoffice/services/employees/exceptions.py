"""Employee domain exceptions."""

from backoffice.services.exceptions import NotFoundError, ValidationError


class EmployeeNotFound(NotFoundError):
    """Employee not found."""

    pass


class DuplicateEmail(ValidationError):
    """Email already taken by another employee."""

    pass


class DuplicateNationalId(ValidationError):
    """National identification number already registered."""

    pass


class BranchRequired(ValidationError):
    """Only admins may be created without a branch."""

    pass
