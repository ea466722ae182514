from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.role_assignment_repository import (
    AssignmentExistsError,
    IRoleAssignmentRepository,
)
from src.domain.base import utcnow
from src.domain.entities import RoleAssignment, RoleKind


class RoleAssignmentRepository(IRoleAssignmentRepository):
    """RoleAssignment repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, assignment_id: UUID) -> Optional[RoleAssignment]:
        """Get role assignment by ID"""
        stmt = select(RoleAssignment).where(RoleAssignment.id == assignment_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_principal_id(self, principal_id: UUID) -> List[RoleAssignment]:
        """Get every role assignment of a principal, active or not"""
        stmt = (
            select(RoleAssignment)
            .where(RoleAssignment.principal_id == principal_id)
            .order_by(RoleAssignment.assigned_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_principal_and_organization(
        self, principal_id: UUID, organization_id: Optional[UUID]
    ) -> Optional[RoleAssignment]:
        """Get the assignment for a principal in an organization (None = system-wide)"""
        if organization_id is None:
            scope = RoleAssignment.organization_id.is_(None)
        else:
            scope = RoleAssignment.organization_id == organization_id
        stmt = select(RoleAssignment).where(RoleAssignment.principal_id == principal_id, scope)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_active_by_organization(self, organization_id: UUID, now: datetime) -> int:
        """Count effective assignments in an organization"""
        stmt = (
            select(func.count())
            .select_from(RoleAssignment)
            .where(
                RoleAssignment.organization_id == organization_id,
                RoleAssignment.active == True,  # noqa: E712
                or_(RoleAssignment.expires_at.is_(None), RoleAssignment.expires_at > now),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_active_system_admins(self, now: datetime) -> int:
        """Count effective system-wide system_admin assignments"""
        stmt = (
            select(func.count())
            .select_from(RoleAssignment)
            .where(
                RoleAssignment.role_kind == RoleKind.system_admin,
                RoleAssignment.organization_id.is_(None),
                RoleAssignment.active == True,  # noqa: E712
                or_(RoleAssignment.expires_at.is_(None), RoleAssignment.expires_at > now),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def create(self, assignment: RoleAssignment) -> RoleAssignment:
        """Create a new role assignment"""
        self.session.add(assignment)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise AssignmentExistsError(str(assignment.principal_id)) from exc
        await self.session.refresh(assignment)
        return assignment

    async def update(self, assignment: RoleAssignment) -> RoleAssignment:
        """Update an existing role assignment"""
        assignment.updated_at = utcnow()
        self.session.add(assignment)
        await self.session.flush()
        await self.session.refresh(assignment)
        return assignment

    async def deactivate(self, assignment_id: UUID) -> bool:
        """Flip active True -> False atomically"""
        stmt = (
            update(RoleAssignment)
            .where(RoleAssignment.id == assignment_id, RoleAssignment.active == True)  # noqa: E712
            .values(active=False, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def reactivate(
        self,
        assignment_id: UUID,
        role_kind: RoleKind,
        permission_overrides: List[str],
        expires_at: Optional[datetime],
        assigned_by: Optional[UUID],
    ) -> bool:
        """Flip active False -> True atomically, replacing role details"""
        now = utcnow()
        stmt = (
            update(RoleAssignment)
            .where(RoleAssignment.id == assignment_id, RoleAssignment.active == False)  # noqa: E712
            .values(
                active=True,
                role_kind=role_kind,
                permission_overrides=list(permission_overrides),
                expires_at=expires_at,
                assigned_by=assigned_by,
                assigned_at=now,
                updated_at=now,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
