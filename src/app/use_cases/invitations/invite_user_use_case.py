"""
Invite User to Organization Use Case

Creates an invitation, or reissues the open one for the same email.
"""

import secrets
from datetime import timedelta
from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.repositories.invitation_repository import OpenInvitationExistsError
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.base import utcnow
from src.domain.catalog import plan_limits
from src.domain.entities import Invitation, InvitationStatus, Permission, RoleKind

from .dtos import InviteUserResponse


def _processed_concurrently() -> Error:
    return Error(
        "INVITATION_ALREADY_PROCESSED",
        "The open invitation was processed while reissuing it; send the invite again",
    )


class InviteUserUseCase:
    """
    Use case for inviting an email address into an organization.

    Business Rules:
    - Inviter needs org:invitations:manage in the organization
    - Only org_admin and user roles are invitable
    - Email already holding an active assignment there -> ALREADY_MEMBER,
      checked before any state change
    - At most one pending/expired invitation per (email, organization):
      an open one is reissued in place with a new token and expiry
    - The organization's plan user limit must leave room
    - Creates audit event for compliance tracking
    """

    def __init__(self, uow: UnitOfWork, ttl: timedelta = timedelta(days=7)):
        self.uow = uow
        self.ttl = ttl

    async def execute(
        self,
        inviter_id: UUID,
        organization_id: UUID,
        email: str,
        role_kind: str,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[InviteUserResponse]:
        """
        Execute invite user use case.

        Args:
            inviter_id: Principal sending the invite
            organization_id: Target organization
            email: Email address to invite
            role_kind: Role to grant on acceptance (org_admin/user)
            request_meta: Client details for the audit event

        Returns:
            Result with InviteUserResponse DTO, or Error
        """
        async with self.uow:
            try:
                kind = RoleKind(role_kind)
            except ValueError:
                return Return.err(
                    Error("INVALID_ROLE", f"Invalid role: {role_kind}. Must be one of: org_admin, user")
                )
            if kind == RoleKind.system_admin:
                return Return.err(
                    Error("INVALID_ROLE", "System administrator roles cannot be granted by invitation")
                )

            denied = await require_permission(
                self.uow,
                inviter_id,
                Permission.manage_org_invitations,
                organization_id,
                resource_type="invitation",
                request_meta=request_meta,
            )
            if denied:
                return Return.err(denied)

            email = email.strip().lower()
            now = utcnow()

            existing_principal = await self.uow.principals.get_by_email(email)
            if existing_principal:
                assignment = await self.uow.role_assignments.get_by_principal_and_organization(
                    existing_principal.id, organization_id
                )
                if assignment and assignment.is_effective(now):
                    return Return.err(
                        Error("ALREADY_MEMBER", "User is already a member of this organization")
                    )

            organization = await self.uow.organizations.get_by_id(organization_id)
            member_count = await self.uow.role_assignments.count_active_by_organization(
                organization_id, now
            )
            if not plan_limits(organization.subscription_plan).allows_users(member_count):
                return Return.err(
                    Error("USER_LIMIT_REACHED", "Organization has reached its plan's user limit")
                )

            token = secrets.token_urlsafe(32)
            expires_at = now + self.ttl
            invitation_created = False

            invitation = await self.uow.invitations.get_open_by_organization_and_email(
                organization_id, email
            )
            if invitation is None:
                invitation = Invitation(
                    organization_id=organization_id,
                    email=email,
                    role_kind=kind,
                    invited_by=inviter_id,
                    token=token,
                    expires_at=expires_at,
                )
                try:
                    await self.uow.invitations.create(invitation)
                except OpenInvitationExistsError:
                    # A concurrent invite stored the open row first; reissue that one
                    await self.uow.rollback()
                    invitation = await self.uow.invitations.get_open_by_organization_and_email(
                        organization_id, email
                    )
                    if invitation is None:
                        return Return.err(_processed_concurrently())
                else:
                    invitation_created = True

            invitation_id = invitation.id
            if invitation_created:
                old_values = None
                action = "invitation.created"
            else:
                old_values = {
                    "status": invitation.effective_status(now).value,
                    "role_kind": invitation.role_kind.value,
                    "expires_at": invitation.expires_at.isoformat(),
                }
                reissued = await self.uow.invitations.reissue(
                    invitation_id,
                    token=token,
                    role_kind=kind,
                    expires_at=expires_at,
                    invited_by=inviter_id,
                )
                if not reissued:
                    return Return.err(_processed_concurrently())
                action = "invitation.reissued"

            await self.uow.audit_events.create(
                build_audit_event(
                    action=action,
                    resource_type="invitation",
                    resource_id=str(invitation_id),
                    actor_id=inviter_id,
                    organization_id=organization_id,
                    old_values=old_values,
                    new_values={
                        "email": email,
                        "role_kind": kind.value,
                        "expires_at": expires_at.isoformat(),
                    },
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            # Delivery of the invitation email happens outside this service

            return Return.ok(
                InviteUserResponse(
                    invitation_id=str(invitation_id),
                    status=InvitationStatus.pending.value,
                    token=token,
                    invite_url=f"/invite/{token}",
                    expires_at=expires_at.isoformat(),
                    reissued=old_values is not None,
                )
            )
