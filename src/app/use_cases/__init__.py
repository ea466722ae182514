"""
Use Cases

Organized by domain folder:
- invitations/: Invitation lifecycle
- roles/: Role grants and revocations
- organizations/: Organization lifecycle
- permissions/: Permission queries
- audit/: Audit logs

access.py holds the permission check every acting use case goes through.
"""

from .audit import GetAuditEventsUseCase
from .invitations import (
    AcceptInvitationUseCase,
    GetInvitationUseCase,
    InviteUserUseCase,
    ListInvitationsUseCase,
    RevokeInvitationUseCase,
)
from .organizations import CreateOrganizationUseCase, SetOrganizationStatusUseCase
from .permissions import CheckPermissionUseCase, GetPermissionsUseCase
from .roles import GrantRoleUseCase, RevokeRoleUseCase

__all__ = [
    # Invitations
    "InviteUserUseCase",
    "AcceptInvitationUseCase",
    "RevokeInvitationUseCase",
    "GetInvitationUseCase",
    "ListInvitationsUseCase",
    # Roles
    "GrantRoleUseCase",
    "RevokeRoleUseCase",
    # Organizations
    "CreateOrganizationUseCase",
    "SetOrganizationStatusUseCase",
    # Permissions
    "GetPermissionsUseCase",
    "CheckPermissionUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
