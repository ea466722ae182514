"""
Invitation Use Cases

Invitation lifecycle: invite, accept, revoke and read.
"""

from .accept_invitation_use_case import AcceptInvitationUseCase
from .dtos import (
    AcceptInvitationResponse,
    InvitationListResponse,
    InvitationView,
    InviteUserResponse,
    RevokeInvitationResponse,
)
from .get_invitation_use_case import GetInvitationUseCase
from .invite_user_use_case import InviteUserUseCase
from .list_invitations_use_case import ListInvitationsUseCase
from .revoke_invitation_use_case import RevokeInvitationUseCase

__all__ = [
    "InviteUserUseCase",
    "AcceptInvitationUseCase",
    "RevokeInvitationUseCase",
    "GetInvitationUseCase",
    "ListInvitationsUseCase",
    "InviteUserResponse",
    "AcceptInvitationResponse",
    "RevokeInvitationResponse",
    "InvitationView",
    "InvitationListResponse",
]
