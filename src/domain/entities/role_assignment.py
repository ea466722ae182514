"""
RoleAssignment Entity

Binds a Principal to a RoleKind, optionally within an Organization.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlmodel import Column, DateTime, Field, Index, JSON, Relationship, SQLModel

from src.domain.base import utcnow

from .enums import RoleKind

if TYPE_CHECKING:
    from .organization import Organization
    from .principal import Principal


class RoleAssignment(SQLModel, table=True):
    """
    RoleAssignment entity - grant of a role to a principal.

    Business Rules:
    - system_admin assignments have no organization_id
    - org_admin and user assignments always have an organization_id
    - One row per (principal, organization); at most one system-wide row
    - permission_overrides are unioned with the role defaults
    - Never deleted: revoke flips active, reactivation flips it back
    - expires_at in the past is treated exactly like active=False
    """

    __tablename__ = "role_assignments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    principal_id: UUID = Field(foreign_key="principals.id", nullable=False, index=True)
    organization_id: Optional[UUID] = Field(
        default=None, foreign_key="organizations.id", index=True
    )

    role_kind: RoleKind = Field(nullable=False)
    permission_overrides: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    active: bool = Field(default=True)
    assigned_by: Optional[UUID] = Field(default=None)

    # Timestamps
    assigned_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    # Relationships
    principal: "Principal" = Relationship(back_populates="role_assignments")
    organization: Optional["Organization"] = Relationship(back_populates="role_assignments")

    __table_args__ = (
        Index("idx_role_assignment_principal_org", "principal_id", "organization_id", unique=True),
        # NULLs are distinct in the index above, so the system-wide row needs its own
        Index(
            "uq_role_assignment_system_principal",
            "principal_id",
            unique=True,
            sqlite_where=text("organization_id IS NULL"),
            postgresql_where=text("organization_id IS NULL"),
        ),
        Index("idx_role_assignment_active", "active"),
    )

    def is_effective(self, now: datetime) -> bool:
        """Active and not past its expiry"""
        if not self.active:
            return False
        return self.expires_at is None or self.expires_at > now

    def snapshot(self) -> dict:
        """JSON-safe view used for audit old/new values"""
        return {
            "id": str(self.id),
            "principal_id": str(self.principal_id),
            "organization_id": str(self.organization_id) if self.organization_id else None,
            "role_kind": self.role_kind.value,
            "permission_overrides": list(self.permission_overrides or []),
            "active": self.active,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
