"""
Admin API Routes

Organization lifecycle for system administrators.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import parse_uuid, raise_for_error
from src.app.services.audit_recorder import RequestMeta
from src.app.services.identity_resolver import PrincipalContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.organizations import (
    CreateOrganizationUseCase,
    OrganizationView,
    SetOrganizationStatusResponse,
    SetOrganizationStatusUseCase,
)
from src.depends import get_principal_context, get_request_meta, get_unit_of_work

router = APIRouter(prefix="/api/admin/organizations", tags=["Admin"])


class CreateOrganizationRequest(BaseModel):
    """POST /api/admin/organizations request payload"""

    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, description="Derived from the name when omitted")
    subscription_plan: str = Field("free", description="free/basic/premium/enterprise")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=OrganizationView)
async def create_organization(
    request: CreateOrganizationRequest,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Create Organization

    Raises:
        - 400 Bad Request: INVALID_SLUG, INVALID_PLAN
        - 403 Forbidden: PERMISSION_DENIED
        - 409 Conflict: SLUG_TAKEN
    """
    result = await CreateOrganizationUseCase(uow).execute(
        actor_id=principal.principal_id,
        name=request.name,
        slug=request.slug,
        subscription_plan=request.subscription_plan,
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


async def _set_status(org_id, active, principal, uow, request_meta):
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")

    result = await SetOrganizationStatusUseCase(uow).execute(
        principal.principal_id, organization_id, active, request_meta=request_meta
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{org_id}/deactivate",
    status_code=status.HTTP_200_OK,
    response_model=SetOrganizationStatusResponse,
)
async def deactivate_organization(
    org_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Deactivate Organization

    Every organization-scoped permission check is denied while inactive.
    Role assignments are kept and apply again after reactivation.
    """
    return await _set_status(org_id, False, principal, uow, request_meta)


@router.post(
    "/{org_id}/activate",
    status_code=status.HTTP_200_OK,
    response_model=SetOrganizationStatusResponse,
)
async def activate_organization(
    org_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """Reactivate Organization"""
    return await _set_status(org_id, True, principal, uow, request_meta)
