"""
Permission API Routes

Current principal and permission queries.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import parse_uuid, raise_for_error
from src.app.services.audit_recorder import RequestMeta
from src.app.services.identity_resolver import PrincipalContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.permissions import (
    CheckPermissionResponse,
    CheckPermissionUseCase,
    GetPermissionsUseCase,
    PermissionsResponse,
    RoleSummary,
)
from src.depends import get_principal_context, get_request_meta, get_unit_of_work

router = APIRouter(prefix="/api", tags=["Permissions"])


class MeResponse(BaseModel):
    """GET /api/me response payload"""

    principal_id: str
    email: str
    is_system_admin: bool
    roles: List[RoleSummary]
    permissions: List[str]


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MeResponse)
async def get_me(
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Current principal with its effective roles and permissions.

    Raises:
        - 401 Unauthorized: No session
    """
    result = await GetPermissionsUseCase(uow).execute(principal.principal_id)
    if result.is_err():
        raise_for_error(result.error)

    permissions = result.value
    return MeResponse(
        principal_id=str(principal.principal_id),
        email=principal.email,
        is_system_admin=permissions.is_system_admin,
        roles=permissions.roles,
        permissions=permissions.permissions,
    )


@router.get(
    "/auth/permissions",
    status_code=status.HTTP_200_OK,
    response_model=PermissionsResponse,
)
async def get_permissions(
    organization_id: Optional[str] = Query(None, description="Organization scope"),
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Effective permissions system-wide, or within one organization.

    Raises:
        - 400 Bad Request: INVALID_ORGANIZATION_ID
        - 404 Not Found: ORGANIZATION_NOT_FOUND
    """
    organization_uuid = None
    if organization_id:
        organization_uuid = parse_uuid(organization_id, "INVALID_ORGANIZATION_ID", "organization ID")

    result = await GetPermissionsUseCase(uow).execute(principal.principal_id, organization_uuid)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


class CheckPermissionRequest(BaseModel):
    """POST /api/auth/permissions/check request payload"""

    permission: str = Field(..., description="Permission string, e.g. org:users:manage")
    organization_id: Optional[str] = Field(None, description="Organization scope")


@router.post(
    "/auth/permissions/check",
    status_code=status.HTTP_200_OK,
    response_model=CheckPermissionResponse,
)
async def check_permission(
    request: CheckPermissionRequest,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Authorization decision for one permission.

    A denial is a normal 200 response with allowed=false.

    Raises:
        - 400 Bad Request: INVALID_PERMISSION, INVALID_ORGANIZATION_ID
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    organization_uuid = None
    if request.organization_id:
        organization_uuid = parse_uuid(
            request.organization_id, "INVALID_ORGANIZATION_ID", "organization ID"
        )

    result = await CheckPermissionUseCase(uow).execute(
        principal.principal_id,
        request.permission,
        organization_id=organization_uuid,
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value
