"""Service catalog exceptions."""

from backoffice.services.exceptions import NotFoundError, ValidationError


class ServiceNotFound(NotFoundError):
    """Catalog service not found."""

    def __init__(self, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(f"Service with ID {service_id} not found" if service_id else "Service not found")


class DuplicateServiceName(ValidationError):
    """A catalog service with this name already exists."""

    pass
