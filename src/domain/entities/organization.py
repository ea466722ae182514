"""
Organization Entity

Tenant boundary scoping org_admin/user roles and plan limits.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, Relationship, SQLModel

from src.domain.base import utcnow

from .enums import SubscriptionPlan

if TYPE_CHECKING:
    from .role_assignment import RoleAssignment


class Organization(SQLModel, table=True):
    """
    Organization entity - isolated tenant.

    Business Rules:
    - Slug is unique, lowercase, [a-z0-9-]+
    - Subscription plan implies max users / max APIs (-1 = unlimited)
    - Deactivation denies every organization-scoped permission check
    - Never deleted here; deletion belongs to the CRUD layer
    """

    __tablename__ = "organizations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    slug: str = Field(unique=True, index=True, max_length=50)

    subscription_plan: SubscriptionPlan = Field(default=SubscriptionPlan.free)
    active: bool = Field(default=True)

    created_by: Optional[UUID] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    # Relationships
    role_assignments: list["RoleAssignment"] = Relationship(back_populates="organization")

    __table_args__ = (Index("idx_organization_active", "active"),)
