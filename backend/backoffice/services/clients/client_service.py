"""Client management service."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from backoffice.models import Client
from backoffice.models.client import CUSTOMER_CODE_CONSTRAINT
from backoffice.models.types import is_ulid
from backoffice.services.catalog.catalog_service import CatalogServiceService
from backoffice.services.clients.exceptions import ClientNotFound, DuplicateClientEmail
from backoffice.services.identifiers import (
    SequenceAllocator,
    branch_scoped,
    client_scope,
    insert_with_identifier,
)

logger = structlog.get_logger(__name__)


class ClientService:
    """Service for client records."""

    def __init__(self, session: AsyncSession, allocator: SequenceAllocator | None = None):
        self.session = session
        self.allocator = allocator or SequenceAllocator.for_session(session)

    async def create_client(
        self,
        *,
        name: str,
        email: str,
        service_id: str,
        branch_id: str,
        phone: str | None = None,
        address: str | None = None,
        city: str | None = None,
        postal_code: str | None = None,
    ) -> Client:
        """Create a client of a branch under the next ``CUST-<branch>-###`` code."""
        branch, scope = await branch_scoped(self.session, branch_id, client_scope)

        existing = await self.session.execute(select(Client.id).where(Client.email == email).limit(1))
        if existing.first() is not None:
            raise DuplicateClientEmail()

        service = await CatalogServiceService(self.session, self.allocator).get_service(service_id)

        client = await insert_with_identifier(
            self.session,
            self.allocator,
            scope,
            lambda code: Client(
                customer_code=code,
                name=name,
                email=email,
                phone=phone,
                address=address,
                city=city,
                postal_code=postal_code,
                branch_id=branch.id,
                service_id=service.id,
            ),
            CUSTOMER_CODE_CONSTRAINT,
        )
        await self.session.commit()

        logger.info("Created client", client_id=client.id, customer_code=client.customer_code)
        return client

    async def get_client(self, client_id: str) -> Client:
        client = await self.session.get(Client, client_id) if is_ulid(client_id) else None
        if client is None:
            raise ClientNotFound()
        return client
