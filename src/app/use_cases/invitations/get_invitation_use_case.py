"""
Get Invitation Use Case

Reads an invitation by its token, reporting the effective status.
"""

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow

from .dtos import InvitationView


class GetInvitationUseCase:
    """Token lookup for the invitation landing page; never writes"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, token: str) -> Result[InvitationView]:
        async with self.uow:
            invitation = await self.uow.invitations.get_by_token(token)
            if invitation is None:
                return Return.err(
                    Error("INVALID_TOKEN", "Invalid or non-existent invitation token")
                )

            organization = await self.uow.organizations.get_by_id(invitation.organization_id)

            return Return.ok(
                InvitationView(
                    invitation_id=str(invitation.id),
                    organization_id=str(invitation.organization_id),
                    organization_name=organization.name if organization else None,
                    email=invitation.email,
                    role_kind=invitation.role_kind.value,
                    status=invitation.effective_status(utcnow()).value,
                    expires_at=invitation.expires_at.isoformat(),
                )
            )
