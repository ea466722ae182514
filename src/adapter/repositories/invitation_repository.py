from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.invitation_repository import (
    IInvitationRepository,
    OpenInvitationExistsError,
)
from src.domain.base import utcnow
from src.domain.entities import Invitation, InvitationStatus, RoleKind

OPEN_STATUSES = [InvitationStatus.pending, InvitationStatus.expired]


class InvitationRepository(IInvitationRepository):
    """Invitation repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        """Get invitation by ID"""
        stmt = select(Invitation).where(Invitation.id == invitation_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_token(self, token: str) -> Optional[Invitation]:
        """Get invitation by token"""
        stmt = select(Invitation).where(Invitation.token == token)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_open_by_organization_and_email(
        self, organization_id: UUID, email: str
    ) -> Optional[Invitation]:
        """Get the non-terminal (pending or expired) invitation for an email"""
        stmt = (
            select(Invitation)
            .where(
                Invitation.organization_id == organization_id,
                Invitation.email == email,
                Invitation.status.in_(OPEN_STATUSES),
            )
            .order_by(Invitation.created_at)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_organization_id(self, organization_id: UUID) -> List[Invitation]:
        """Get all invitations for an organization"""
        stmt = (
            select(Invitation)
            .where(Invitation.organization_id == organization_id)
            .order_by(Invitation.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation"""
        self.session.add(invitation)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise OpenInvitationExistsError(invitation.email) from exc
        await self.session.refresh(invitation)
        return invitation

    async def transition_status(
        self,
        invitation_id: UUID,
        expected: List[InvitationStatus],
        new_status: InvitationStatus,
    ) -> bool:
        """Compare-and-set the status column"""
        now = utcnow()
        values = {"status": new_status, "updated_at": now}
        if new_status == InvitationStatus.accepted:
            values["accepted_at"] = now
        stmt = (
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.status.in_(expected))
            .values(**values)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def reissue(
        self,
        invitation_id: UUID,
        token: str,
        role_kind: RoleKind,
        expires_at: datetime,
        invited_by: UUID,
    ) -> bool:
        """Compare-and-set on an open status; accepted/revoked rows are never rewritten"""
        stmt = (
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.status.in_(OPEN_STATUSES))
            .values(
                token=token,
                role_kind=role_kind,
                expires_at=expires_at,
                invited_by=invited_by,
                status=InvitationStatus.pending,
                updated_at=utcnow(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
