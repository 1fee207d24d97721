"""Branch management service."""

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from backoffice.models import Branch
from backoffice.models.branch import BRANCH_CODE_CONSTRAINT
from backoffice.models.types import is_ulid, utc_now
from backoffice.services.branches.exceptions import BranchNotFound
from backoffice.services.identifiers import SequenceAllocator, branch_scope, insert_with_identifier

logger = structlog.get_logger(__name__)


class BranchService:
    """Service for branch management operations."""

    def __init__(self, session: AsyncSession, allocator: SequenceAllocator | None = None):
        self.session = session
        self.allocator = allocator or SequenceAllocator.for_session(session)

    async def create_branch(
        self,
        *,
        name: str,
        address: str,
        city: str,
        postal_code: str | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> Branch:
        """Create a branch under the next ``BR-###`` code."""
        branch = await insert_with_identifier(
            self.session,
            self.allocator,
            branch_scope(),
            lambda code: Branch(
                branch_code=code,
                name=name,
                address=address,
                city=city,
                postal_code=postal_code,
                phone=phone,
                email=email,
            ),
            BRANCH_CODE_CONSTRAINT,
        )
        await self.session.commit()

        logger.info("Created branch", branch_id=branch.id, branch_code=branch.branch_code)
        return branch

    async def get_branch(self, branch_id: str) -> Branch:
        branch = await self.session.get(Branch, branch_id) if is_ulid(branch_id) else None
        if branch is None or branch.deleted_at is not None:
            raise BranchNotFound()
        return branch

    async def get_branch_by_code(self, branch_code: str) -> Branch:
        statement = select(Branch).where(Branch.branch_code == branch_code, Branch.deleted_at.is_(None))  # type: ignore[union-attr]
        result = await self.session.execute(statement)
        branch = result.scalars().first()
        if branch is None:
            raise BranchNotFound()
        return branch

    async def list_branches(self, *, active_only: bool = True) -> list[Branch]:
        """List branches in branch code order. Deleted branches are never listed."""
        statement = (
            select(Branch)
            .where(Branch.deleted_at.is_(None))  # type: ignore[union-attr]
            .order_by(func.length(Branch.branch_code), Branch.branch_code)  # type: ignore[arg-type]
        )
        if active_only:
            statement = statement.where(Branch.is_active == True)  # noqa: E712
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def update_branch(
        self,
        branch_id: str,
        *,
        name: str | None = None,
        address: str | None = None,
        city: str | None = None,
        postal_code: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        is_active: bool | None = None,
    ) -> Branch:
        """Update descriptive fields. ``None`` leaves a field as it is; the code never changes."""
        branch = await self.get_branch(branch_id)
        changes = {
            "name": name,
            "address": address,
            "city": city,
            "postal_code": postal_code,
            "phone": phone,
            "email": email,
            "is_active": is_active,
        }
        for field, value in changes.items():
            if value is not None:
                setattr(branch, field, value)
        branch.updated_at = utc_now()
        await self.session.commit()

        logger.info("Updated branch", branch_id=branch.id, branch_code=branch.branch_code)
        return branch

    async def deactivate_branch(self, branch_id: str) -> Branch:
        """Hide a branch from active listings. Its code stays reserved."""
        return await self.update_branch(branch_id, is_active=False)

    async def delete_branch(self, branch_id: str) -> Branch:
        """Soft-delete a branch.

        The row is kept with ``deleted_at`` set, so its code still counts when
        the next branch code is allocated and is never issued again.
        """
        branch = await self.get_branch(branch_id)
        branch.is_active = False
        now = utc_now()
        branch.deleted_at = now
        branch.updated_at = now
        await self.session.commit()

        logger.info("Deleted branch", branch_id=branch.id, branch_code=branch.branch_code)
        return branch
