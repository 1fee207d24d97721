"""Employee management service."""

from datetime import date
from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from backoffice.models import Branch, Employee, Role
from backoffice.models.employee import EMPLOYEE_CODE_CONSTRAINT
from backoffice.models.types import is_ulid, utc_now
from backoffice.services.employees.exceptions import (
    BranchRequired,
    DuplicateEmail,
    DuplicateNationalId,
    EmployeeNotFound,
)
from backoffice.services.identifiers import (
    SequenceAllocator,
    SequenceScope,
    branch_scoped,
    employee_scope,
    insert_with_identifier,
)

logger = structlog.get_logger(__name__)


class EmployeeService:
    """Service for employee records."""

    def __init__(self, session: AsyncSession, allocator: SequenceAllocator | None = None):
        self.session = session
        self.allocator = allocator or SequenceAllocator.for_session(session)

    async def create_employee(
        self,
        *,
        email: str,
        name: str,
        role: Role = Role.EMPLOYEE,
        branch_id: str | None = None,
        phone: str | None = None,
        national_id: str | None = None,
        date_of_birth: date | None = None,
        is_active: bool = True,
    ) -> Employee:
        """Create an employee, coding them ``EMP-<branch>-###`` when they belong to a branch.

        Admins may be created without a branch and then carry no code. The
        branch is resolved before the employees table is read at all.
        """
        branch: Branch | None = None
        scope: SequenceScope | None = None
        if branch_id is not None:
            branch, scope = await branch_scoped(self.session, branch_id, employee_scope)
        elif role != Role.ADMIN:
            raise BranchRequired()

        await self._check_unique(email=email, national_id=national_id)

        def build(code: str | None) -> Employee:
            return Employee(
                employee_code=code,
                email=email,
                name=name,
                role=role,
                branch_id=branch.id if branch else None,
                phone=phone,
                national_id=national_id,
                date_of_birth=date_of_birth,
                is_active=is_active,
            )

        if branch is None or scope is None:
            employee = build(None)
            self.session.add(employee)
            await self.session.commit()
            logger.info("Created employee without branch", employee_id=employee.id, role=role)
            return employee

        employee = await insert_with_identifier(self.session, self.allocator, scope, build, EMPLOYEE_CODE_CONSTRAINT)
        await self.session.commit()

        logger.info(
            "Created employee",
            employee_id=employee.id,
            employee_code=employee.employee_code,
            branch_code=branch.branch_code,
            role=role,
        )
        return employee

    async def update_employee(
        self,
        employee_id: str,
        *,
        email: str | None = None,
        name: str | None = None,
        role: Role | None = None,
        phone: str | None = None,
        national_id: str | None = None,
        date_of_birth: date | None = None,
        is_active: bool | None = None,
    ) -> Employee:
        """Update personal and role fields. ``None`` leaves a field as it is.

        Neither the employee code nor the branch it was issued for can change.
        """
        employee = await self.get_employee(employee_id)
        if role is not None and role != Role.ADMIN and employee.branch_id is None:
            raise BranchRequired()
        await self._check_unique(email=email, national_id=national_id, exclude_id=employee.id)

        changes: dict[str, Any] = {
            "email": email,
            "name": name,
            "role": role,
            "phone": phone,
            "national_id": national_id,
            "date_of_birth": date_of_birth,
            "is_active": is_active,
        }
        for field, value in changes.items():
            if value is not None:
                setattr(employee, field, value)
        employee.updated_at = utc_now()
        await self.session.commit()

        logger.info("Updated employee", employee_id=employee.id, employee_code=employee.employee_code)
        return employee

    async def get_employee(self, employee_id: str) -> Employee:
        employee = await self.session.get(Employee, employee_id) if is_ulid(employee_id) else None
        if employee is None:
            raise EmployeeNotFound()
        return employee

    async def get_employee_by_code(self, employee_code: str) -> Employee:
        result = await self.session.execute(select(Employee).where(Employee.employee_code == employee_code))
        employee = result.scalars().first()
        if employee is None:
            raise EmployeeNotFound()
        return employee

    async def list_branch_employees(self, branch_id: str) -> list[Employee]:
        """Employees of a branch in employee code order."""
        statement = (
            select(Employee)
            .where(Employee.branch_id == branch_id)
            .order_by(func.length(Employee.employee_code), Employee.employee_code)  # type: ignore[arg-type]
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def _check_unique(
        self,
        *,
        email: str | None,
        national_id: str | None,
        exclude_id: str | None = None,
    ) -> None:
        if email and await self._exists(Employee.email == email, exclude_id):
            raise DuplicateEmail()
        if national_id and await self._exists(Employee.national_id == national_id, exclude_id):
            raise DuplicateNationalId()

    async def _exists(self, condition: object, exclude_id: str | None) -> bool:
        statement = select(Employee.id).where(condition)  # type: ignore[arg-type]
        if exclude_id is not None:
            statement = statement.where(Employee.id != exclude_id)
        result = await self.session.execute(statement.limit(1))
        return result.first() is not None
