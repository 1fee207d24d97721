"""Service catalog management."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from backoffice.models import CatalogService
from backoffice.models.catalog import SERVICE_CODE_CONSTRAINT
from backoffice.models.types import is_ulid
from backoffice.services.catalog.exceptions import DuplicateServiceName, ServiceNotFound
from backoffice.services.identifiers import SequenceAllocator, insert_with_identifier, service_scope

logger = structlog.get_logger(__name__)


class CatalogServiceService:
    """Create and look up billable services."""

    def __init__(self, session: AsyncSession, allocator: SequenceAllocator | None = None):
        self.session = session
        self.allocator = allocator or SequenceAllocator.for_session(session)

    async def create_service(self, name: str) -> CatalogService:
        """Create a service under the next ``SRV-###`` code. Names are unique."""
        existing = await self.session.execute(select(CatalogService.id).where(CatalogService.name == name).limit(1))
        if existing.first() is not None:
            raise DuplicateServiceName()

        service = await insert_with_identifier(
            self.session,
            self.allocator,
            service_scope(),
            lambda code: CatalogService(service_code=code, name=name),
            SERVICE_CODE_CONSTRAINT,
        )
        await self.session.commit()

        logger.info("Created catalog service", service_id=service.id, service_code=service.service_code)
        return service

    async def get_service(self, service_id: str) -> CatalogService:
        service = await self.session.get(CatalogService, service_id) if is_ulid(service_id) else None
        if service is None:
            raise ServiceNotFound(service_id)
        return service
