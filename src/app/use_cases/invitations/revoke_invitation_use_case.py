"""
Revoke Invitation Use Case

Withdraws an invitation that has not been accepted.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.base import utcnow
from src.domain.entities import InvitationStatus, Permission

from .dtos import RevokeInvitationResponse


class RevokeInvitationUseCase:
    """
    Use case for revoking invitations.

    Business Rules:
    - Actor needs org:invitations:manage in the invitation's organization
    - Pending and lapsed (expired) invitations can be revoked
    - Accepted or revoked invitations -> INVITATION_ALREADY_PROCESSED
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor_id: UUID,
        organization_id: UUID,
        invitation_id: UUID,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[RevokeInvitationResponse]:
        async with self.uow:
            denied = await require_permission(
                self.uow,
                actor_id,
                Permission.manage_org_invitations,
                organization_id,
                resource_type="invitation",
                resource_id=str(invitation_id),
                request_meta=request_meta,
            )
            if denied:
                return Return.err(denied)

            invitation = await self.uow.invitations.get_by_id(invitation_id)
            if invitation is None or invitation.organization_id != organization_id:
                return Return.err(Error("INVITATION_NOT_FOUND", "Invitation not found"))

            if invitation.is_terminal():
                return Return.err(
                    Error(
                        "INVITATION_ALREADY_PROCESSED",
                        f"This invitation has already been {invitation.status.value}",
                    )
                )

            previous_status = invitation.effective_status(utcnow())

            revoked = await self.uow.invitations.transition_status(
                invitation.id,
                [InvitationStatus.pending, InvitationStatus.expired],
                InvitationStatus.revoked,
            )
            if not revoked:
                return Return.err(
                    Error(
                        "INVITATION_ALREADY_PROCESSED",
                        "This invitation has already been processed",
                    )
                )

            await self.uow.audit_events.create(
                build_audit_event(
                    action="invitation.revoked",
                    resource_type="invitation",
                    resource_id=str(invitation.id),
                    actor_id=actor_id,
                    organization_id=organization_id,
                    old_values={"status": previous_status.value},
                    new_values={"status": InvitationStatus.revoked.value},
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            return Return.ok(RevokeInvitationResponse(status=InvitationStatus.revoked.value))
