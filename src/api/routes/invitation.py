"""
Invitation API Routes

Invite, list and revoke within an organization; read and accept by token.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from src.api.error import parse_uuid, raise_for_error
from src.app.services.audit_recorder import RequestMeta
from src.app.services.identity_resolver import PrincipalContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.invitations import (
    AcceptInvitationResponse,
    AcceptInvitationUseCase,
    GetInvitationUseCase,
    InvitationListResponse,
    InvitationView,
    InviteUserResponse,
    InviteUserUseCase,
    ListInvitationsUseCase,
    RevokeInvitationResponse,
    RevokeInvitationUseCase,
)
from src.depends import get_principal_context, get_request_meta, get_unit_of_work

router = APIRouter(prefix="/api", tags=["Invitations"])


class InviteUserRequest(BaseModel):
    """
    Invite user HTTP request payload

    Validates incoming request for inviting a user to an organization.
    """

    email: EmailStr = Field(..., description="Email address to invite")
    role_kind: str = Field("user", description="Role to grant on acceptance (org_admin/user)")


@router.post(
    "/org/{org_id}/invitations",
    status_code=status.HTTP_201_CREATED,
    response_model=InviteUserResponse,
)
async def invite_user(
    org_id: str,
    request: InviteUserRequest,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Invite User to Organization

    Re-inviting an email with an open (pending or expired) invitation
    reissues that invitation with a new token and expiry.

    Raises:
        - 400 Bad Request: INVALID_ORGANIZATION_ID, INVALID_ROLE
        - 403 Forbidden: PERMISSION_DENIED, ORGANIZATION_INACTIVE
        - 404 Not Found: ORGANIZATION_NOT_FOUND
        - 409 Conflict: ALREADY_MEMBER, USER_LIMIT_REACHED
    """
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")

    use_case = InviteUserUseCase(uow, ttl=timedelta(days=ApplicationConfig.INVITATION_TTL_DAYS))
    result = await use_case.execute(
        inviter_id=principal.principal_id,
        organization_id=organization_id,
        email=request.email,
        role_kind=request.role_kind,
        request_meta=request_meta,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/org/{org_id}/invitations",
    status_code=status.HTTP_200_OK,
    response_model=InvitationListResponse,
)
async def list_invitations(
    org_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """List an organization's invitations with their effective status"""
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")

    result = await ListInvitationsUseCase(uow).execute(principal.principal_id, organization_id)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/org/{org_id}/invitations/{invitation_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeInvitationResponse,
)
async def revoke_invitation(
    org_id: str,
    invitation_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Revoke Invitation

    Raises:
        - 404 Not Found: INVITATION_NOT_FOUND
        - 409 Conflict: INVITATION_ALREADY_PROCESSED
    """
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")
    invitation_uuid = parse_uuid(invitation_id, "INVITATION_NOT_FOUND", "invitation ID")

    result = await RevokeInvitationUseCase(uow).execute(
        principal.principal_id, organization_id, invitation_uuid, request_meta=request_meta
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/invitations/{token}",
    status_code=status.HTTP_200_OK,
    response_model=InvitationView,
)
async def get_invitation(
    token: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Invitation details for the invitation landing page"""
    result = await GetInvitationUseCase(uow).execute(token)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/invitations/{token}/accept",
    status_code=status.HTTP_200_OK,
    response_model=AcceptInvitationResponse,
)
async def accept_invitation(
    token: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    request_meta: RequestMeta = Depends(get_request_meta),
):
    """
    Accept Invitation

    The signed-in principal must own the invited email address.

    Raises:
        - 403 Forbidden: EMAIL_MISMATCH, ORGANIZATION_INACTIVE
        - 404 Not Found: INVALID_TOKEN
        - 409 Conflict: INVITATION_ALREADY_PROCESSED, ALREADY_MEMBER,
                        USER_LIMIT_REACHED
        - 410 Gone: INVITATION_EXPIRED
    """
    result = await AcceptInvitationUseCase(uow).execute(
        token, principal.principal_id, request_meta=request_meta
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value
