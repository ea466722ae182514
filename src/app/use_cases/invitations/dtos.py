"""
Invitation Use Case DTOs (Data Transfer Objects)

All Response classes for the invitation lifecycle.
Provides type safety and clear contracts between layers.
"""

from typing import Optional

from pydantic import BaseModel


# ============================================================================
# Response DTOs
# ============================================================================


class InviteUserResponse(BaseModel):
    """Response for invite user to organization use case"""

    invitation_id: str
    status: str
    token: str
    invite_url: str
    expires_at: str
    reissued: bool


class AcceptInvitationResponse(BaseModel):
    """Response for accept invitation use case"""

    invitation_id: str
    organization_id: str
    organization_name: str
    role_kind: str
    assignment_id: str
    reactivated: bool


class RevokeInvitationResponse(BaseModel):
    """Response for revoke invitation use case"""

    status: str


class InvitationView(BaseModel):
    """Invitation as seen by readers; status is the effective status"""

    invitation_id: str
    organization_id: str
    email: str
    role_kind: str
    status: str
    expires_at: str
    organization_name: Optional[str] = None


class InvitationListResponse(BaseModel):
    """Response for list invitations use case"""

    invitations: list[InvitationView]
