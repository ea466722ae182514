"""
Permission Query DTOs
"""

from typing import Optional

from pydantic import BaseModel


class RoleSummary(BaseModel):
    assignment_id: str
    role_kind: str
    role_name: str
    organization_id: Optional[str]


class PermissionsResponse(BaseModel):
    """Effective permissions of a principal in one scope"""

    principal_id: str
    organization_id: Optional[str]
    is_system_admin: bool
    permissions: list[str]
    roles: list[RoleSummary]


class CheckPermissionResponse(BaseModel):
    """Authorization decision for one permission"""

    allowed: bool
    reason: str
    permission: str
    organization_id: Optional[str]
    matched_role_id: Optional[str] = None
    matched_role_kind: Optional[str] = None
