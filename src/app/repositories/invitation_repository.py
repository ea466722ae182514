from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Invitation, InvitationStatus, RoleKind


class OpenInvitationExistsError(Exception):
    """Raised by create when the email already has an open invitation in the organization"""


class IInvitationRepository(ABC):
    """Invitation repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        """Get invitation by ID"""
        pass

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[Invitation]:
        """Get invitation by token"""
        pass

    @abstractmethod
    async def get_open_by_organization_and_email(
        self, organization_id: UUID, email: str
    ) -> Optional[Invitation]:
        """Get the non-terminal (pending or expired) invitation for an email"""
        pass

    @abstractmethod
    async def get_by_organization_id(self, organization_id: UUID) -> List[Invitation]:
        """Get all invitations for an organization"""
        pass

    @abstractmethod
    async def create(self, invitation: Invitation) -> Invitation:
        """
        Create a new invitation.

        Raises:
            OpenInvitationExistsError: another pending/expired invitation
                for the same (organization, email) was stored first
        """
        pass

    @abstractmethod
    async def transition_status(
        self,
        invitation_id: UUID,
        expected: List[InvitationStatus],
        new_status: InvitationStatus,
    ) -> bool:
        """
        Compare-and-set the status column.

        Returns:
            False when the stored status was not one of ``expected``
        """
        pass

    @abstractmethod
    async def reissue(
        self,
        invitation_id: UUID,
        token: str,
        role_kind: RoleKind,
        expires_at: datetime,
        invited_by: UUID,
    ) -> bool:
        """
        Replace token, role and expiry of an open invitation and make it pending.

        Returns:
            False when the invitation was accepted or revoked in the meantime
        """
        pass
