"""Branch domain exceptions."""

from backoffice.services.exceptions import NotFoundError


class BranchNotFound(NotFoundError):
    """Branch not found."""

    pass
