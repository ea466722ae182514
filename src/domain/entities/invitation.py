"""
Invitation Entity

Time-boxed, single-use offer to join an organization.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow

from .enums import InvitationStatus, RoleKind

_OPEN_STATUS_CLAUSE = "status IN ('pending', 'expired')"


class Invitation(SQLModel, table=True):
    """
    Invitation entity - offer to grant a role assignment to an email.

    Business Rules:
    - Expires after INVITATION_TTL_DAYS (7 by default)
    - Token is single-use, cryptographically random, sent out-of-band
    - At most one pending/expired invitation per (email, organization);
      re-inviting reuses that row with a new token and expiry
    - Expiry is computed at read time; the stored status is not rewritten
    - Immutable once accepted
    """

    __tablename__ = "invitations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    organization_id: UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    email: str = Field(max_length=255, nullable=False, index=True)

    role_kind: RoleKind = Field(nullable=False)
    invited_by: Optional[UUID] = Field(default=None)
    token: str = Field(unique=True, index=True, max_length=64)

    status: InvitationStatus = Field(default=InvitationStatus.pending)

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime))
    accepted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_invitation_expires_at", "expires_at"),
        Index("idx_invitation_org_email", "organization_id", "email"),
        # One open invitation per (organization, email)
        Index(
            "uq_invitation_open_org_email",
            "organization_id",
            "email",
            unique=True,
            sqlite_where=text(_OPEN_STATUS_CLAUSE),
            postgresql_where=text(_OPEN_STATUS_CLAUSE),
        ),
        Index("idx_invitation_status", "status"),
    )

    def effective_status(self, now: datetime) -> InvitationStatus:
        """Stored status, with a lapsed pending invitation read as expired"""
        if self.status == InvitationStatus.pending and self.expires_at <= now:
            return InvitationStatus.expired
        return self.status

    def is_terminal(self) -> bool:
        return self.status in (InvitationStatus.accepted, InvitationStatus.revoked)
