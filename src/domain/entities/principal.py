"""
Principal Entity

A human operator known to the identity provider.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Relationship, SQLModel

from src.domain.base import utcnow

if TYPE_CHECKING:
    from .role_assignment import RoleAssignment


class Principal(SQLModel, table=True):
    """
    Principal entity - a human operator evaluated for access.

    Business Rules:
    - Owned by the identity provider; this service only reads it
    - Email is unique and stored lower-cased
    - Inactive principals cannot authenticate
    """

    __tablename__ = "principals"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)

    active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    # Relationships
    role_assignments: list["RoleAssignment"] = Relationship(back_populates="principal")
