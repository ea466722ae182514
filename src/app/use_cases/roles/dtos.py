"""
Role Management DTOs
"""

from typing import Optional

from pydantic import BaseModel


class RoleAssignmentView(BaseModel):
    """A role assignment as returned by role management endpoints"""

    assignment_id: str
    principal_id: str
    organization_id: Optional[str]
    role_kind: str
    role_name: str
    permission_overrides: list[str]
    active: bool
    expires_at: Optional[str]


class GrantRoleResponse(BaseModel):
    """Response for grant role use case; action is role.granted/role.reactivated/role.updated"""

    action: str
    assignment: RoleAssignmentView


class RevokeRoleResponse(BaseModel):
    """Response for revoke role use case"""

    assignment_id: str
    active: bool
