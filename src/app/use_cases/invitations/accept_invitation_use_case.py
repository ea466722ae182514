"""
Accept Invitation Use Case

Turns a pending invitation into a role assignment for the invited principal.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.repositories.role_assignment_repository import AssignmentExistsError
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.catalog import plan_limits
from src.domain.entities import InvitationStatus, RoleAssignment

from .dtos import AcceptInvitationResponse


class AcceptInvitationUseCase:
    """
    Use case for accepting organization invitations.

    Business Rules:
    - Unknown token -> INVALID_TOKEN
    - Accepted or revoked invitations -> INVITATION_ALREADY_PROCESSED
    - Lapsed invitations -> INVITATION_EXPIRED (nothing is written)
    - Principal email must match the invited email -> EMAIL_MISMATCH
    - Organization must be active
    - Principal with an effective assignment there -> ALREADY_MEMBER
    - A dormant assignment in the organization is reactivated (same id);
      otherwise a new one is created
    - pending -> accepted is a compare-and-set in the same transaction
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        token: str,
        principal_id: UUID,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[AcceptInvitationResponse]:
        """
        Execute accept invitation use case.

        Args:
            token: Invitation token from the invitation URL
            principal_id: Authenticated principal accepting it
            request_meta: Client details for the audit event

        Returns:
            Result with AcceptInvitationResponse DTO, or Error
        """
        async with self.uow:
            invitation = await self.uow.invitations.get_by_token(token)
            if invitation is None:
                return Return.err(
                    Error("INVALID_TOKEN", "Invalid or non-existent invitation token")
                )

            if invitation.is_terminal():
                return Return.err(
                    Error(
                        "INVITATION_ALREADY_PROCESSED",
                        f"This invitation has already been {invitation.status.value}",
                    )
                )

            now = utcnow()
            if invitation.effective_status(now) == InvitationStatus.expired:
                return Return.err(Error("INVITATION_EXPIRED", "This invitation has expired"))

            principal = await self.uow.principals.get_by_id(principal_id)
            if principal is None or not principal.active:
                return Return.err(Error("PRINCIPAL_NOT_FOUND", "Principal not found"))

            # Security check: invitation is bound to the invited email
            if principal.email.lower() != invitation.email.lower():
                return Return.err(
                    Error("EMAIL_MISMATCH", "This invitation was sent to a different email")
                )

            organization = await self.uow.organizations.get_by_id(invitation.organization_id)
            if organization is None:
                return Return.err(Error("ORGANIZATION_NOT_FOUND", "Organization not found"))
            if not organization.active:
                return Return.err(
                    Error("ORGANIZATION_INACTIVE", "Organization is not active")
                )

            existing = await self.uow.role_assignments.get_by_principal_and_organization(
                principal.id, organization.id
            )
            if existing and existing.is_effective(now):
                return Return.err(
                    Error("ALREADY_MEMBER", "You are already a member of this organization")
                )

            member_count = await self.uow.role_assignments.count_active_by_organization(
                organization.id, now
            )
            if not plan_limits(organization.subscription_plan).allows_users(member_count):
                return Return.err(
                    Error("USER_LIMIT_REACHED", "Organization has reached its plan's user limit")
                )

            claimed = await self.uow.invitations.transition_status(
                invitation.id, [InvitationStatus.pending], InvitationStatus.accepted
            )
            if not claimed:
                return Return.err(
                    Error(
                        "INVITATION_ALREADY_PROCESSED",
                        "This invitation has already been processed",
                    )
                )

            old_values = None
            if existing is None:
                assignment = RoleAssignment(
                    principal_id=principal.id,
                    organization_id=organization.id,
                    role_kind=invitation.role_kind,
                    assigned_by=invitation.invited_by,
                )
                try:
                    await self.uow.role_assignments.create(assignment)
                except AssignmentExistsError:
                    # Joined concurrently; the invitation claim is rolled back with it
                    await self.uow.rollback()
                    return Return.err(
                        Error("ALREADY_MEMBER", "You are already a member of this organization")
                    )
                assignment_id = assignment.id
            else:
                old_values = existing.snapshot()
                assignment_id = existing.id
                if existing.active:
                    # Active but past expiry: renew in place
                    existing.role_kind = invitation.role_kind
                    existing.permission_overrides = []
                    existing.expires_at = None
                    existing.assigned_by = invitation.invited_by
                    existing.assigned_at = now
                    await self.uow.role_assignments.update(existing)
                else:
                    reactivated = await self.uow.role_assignments.reactivate(
                        existing.id,
                        role_kind=invitation.role_kind,
                        permission_overrides=[],
                        expires_at=None,
                        assigned_by=invitation.invited_by,
                    )
                    if not reactivated:
                        return Return.err(
                            Error(
                                "ALREADY_MEMBER",
                                "You are already a member of this organization",
                            )
                        )

            await self.uow.audit_events.create(
                build_audit_event(
                    action="invitation.accepted",
                    resource_type="invitation",
                    resource_id=str(invitation.id),
                    actor_id=principal.id,
                    organization_id=organization.id,
                    old_values=old_values,
                    new_values={
                        "assignment_id": str(assignment_id),
                        "role_kind": invitation.role_kind.value,
                        "reactivated": old_values is not None,
                    },
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            return Return.ok(
                AcceptInvitationResponse(
                    invitation_id=str(invitation.id),
                    organization_id=str(organization.id),
                    organization_name=organization.name,
                    role_kind=invitation.role_kind.value,
                    assignment_id=str(assignment_id),
                    reactivated=old_values is not None,
                )
            )
