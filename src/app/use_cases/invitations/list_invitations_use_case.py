"""
List Invitations Use Case

Lists an organization's invitations with their effective status.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.base import utcnow
from src.domain.entities import Permission

from .dtos import InvitationListResponse, InvitationView


class ListInvitationsUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, actor_id: UUID, organization_id: UUID) -> Result[InvitationListResponse]:
        async with self.uow:
            denied = await require_permission(
                self.uow,
                actor_id,
                Permission.manage_org_invitations,
                organization_id,
                resource_type="invitation",
            )
            if denied:
                return Return.err(denied)

            now = utcnow()
            invitations = await self.uow.invitations.get_by_organization_id(organization_id)

            return Return.ok(
                InvitationListResponse(
                    invitations=[
                        InvitationView(
                            invitation_id=str(invitation.id),
                            organization_id=str(invitation.organization_id),
                            email=invitation.email,
                            role_kind=invitation.role_kind.value,
                            status=invitation.effective_status(now).value,
                            expires_at=invitation.expires_at.isoformat(),
                        )
                        for invitation in invitations
                    ]
                )
            )
