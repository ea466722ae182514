"""
Role Management API Routes

Organization-level role changes by organization administrators, and
system-level role management by system administrators.
"""

from datetime import UTC, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import parse_uuid, raise_for_error
from src.app.services.audit_recorder import RequestMeta
from src.app.services.identity_resolver import PrincipalContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.roles import (
    GrantRoleResponse,
    GrantRoleUseCase,
    RevokeRoleResponse,
    RevokeRoleUseCase,
)
from src.depends import get_principal_context, get_request_meta, get_unit_of_work

router = APIRouter(prefix="/api", tags=["Roles"])


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class SetOrganizationRoleRequest(BaseModel):
    """PUT /api/org/{org_id}/users/{principal_id}/role request payload"""

    role_kind: str = Field(..., description="org_admin or user")
    permission_overrides: List[str] = Field(default_factory=list)
    expires_at: Optional[datetime] = Field(None, description="Optional expiry")


@router.put(
    "/org/{org_id}/users/{principal_id}/role",
    status_code=status.HTTP_200_OK,
    response_model=GrantRoleResponse,
)
async def set_organization_role(
    org_id: str,
    principal_id: str,
    request: SetOrganizationRoleRequest,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Grant or change a member's role in an organization

    Raises:
        - 400 Bad Request: INVALID_ROLE, INVALID_SCOPE, INVALID_PERMISSION
        - 403 Forbidden: PERMISSION_DENIED, ORGANIZATION_INACTIVE
        - 404 Not Found: PRINCIPAL_NOT_FOUND
        - 409 Conflict: USER_LIMIT_REACHED
    """
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")
    target_id = parse_uuid(principal_id, "INVALID_PRINCIPAL_ID", "principal ID")

    result = await GrantRoleUseCase(uow).execute(
        actor_id=principal.principal_id,
        principal_id=target_id,
        role_kind=request.role_kind,
        organization_id=organization_id,
        permission_overrides=request.permission_overrides,
        expires_at=_naive_utc(request.expires_at),
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/org/{org_id}/users/{principal_id}/role",
    status_code=status.HTTP_200_OK,
    response_model=RevokeRoleResponse,
)
async def remove_organization_role(
    org_id: str,
    principal_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """Revoke a member's role in an organization"""
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")
    target_id = parse_uuid(principal_id, "INVALID_PRINCIPAL_ID", "principal ID")

    result = await RevokeRoleUseCase(uow).execute(
        actor_id=principal.principal_id,
        principal_id=target_id,
        organization_id=organization_id,
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


class GrantRoleRequest(BaseModel):
    """POST /api/admin/users/{principal_id}/roles request payload"""

    role_kind: str = Field(..., description="system_admin, org_admin or user")
    organization_id: Optional[str] = Field(None, description="Required for org_admin/user")
    permission_overrides: List[str] = Field(default_factory=list)
    expires_at: Optional[datetime] = Field(None, description="Optional expiry")


@router.post(
    "/admin/users/{principal_id}/roles",
    status_code=status.HTTP_200_OK,
    response_model=GrantRoleResponse,
)
async def grant_role(
    principal_id: str,
    request: GrantRoleRequest,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Grant any role, system-wide or in an organization

    Raises:
        - 400 Bad Request: INVALID_ROLE, INVALID_SCOPE, INVALID_PERMISSION
        - 403 Forbidden: PERMISSION_DENIED
        - 404 Not Found: PRINCIPAL_NOT_FOUND, ORGANIZATION_NOT_FOUND
    """
    target_id = parse_uuid(principal_id, "INVALID_PRINCIPAL_ID", "principal ID")
    organization_id = None
    if request.organization_id:
        organization_id = parse_uuid(
            request.organization_id, "INVALID_ORGANIZATION_ID", "organization ID"
        )

    result = await GrantRoleUseCase(uow).execute(
        actor_id=principal.principal_id,
        principal_id=target_id,
        role_kind=request.role_kind,
        organization_id=organization_id,
        permission_overrides=request.permission_overrides,
        expires_at=_naive_utc(request.expires_at),
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/admin/users/{principal_id}/roles/{assignment_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeRoleResponse,
)
async def revoke_role(
    principal_id: str,
    assignment_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Revoke one role assignment

    Raises:
        - 403 Forbidden: PERMISSION_DENIED, CANNOT_REVOKE_SELF
        - 404 Not Found: ASSIGNMENT_NOT_FOUND
    """
    target_id = parse_uuid(principal_id, "INVALID_PRINCIPAL_ID", "principal ID")
    assignment_uuid = parse_uuid(assignment_id, "ASSIGNMENT_NOT_FOUND", "assignment ID")

    result = await RevokeRoleUseCase(uow).execute(
        actor_id=principal.principal_id,
        principal_id=target_id,
        assignment_id=assignment_uuid,
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value
