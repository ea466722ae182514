"""
AuditEvent Entity

Immutable log of authorization decisions and mutating actions.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow

from .enums import AuditSeverity


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - append-only compliance record.

    Business Rules:
    - Immutable (never updated or deleted)
    - actor_id nullable for unauthenticated attempts
    - organization_id nullable for system-wide events
    - Field set is a stable contract for external reporting
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    actor_id: Optional[UUID] = Field(default=None, index=True)
    organization_id: Optional[UUID] = Field(default=None, index=True)

    action: str = Field(max_length=100)  # e.g., "invitation.accepted"
    resource_type: str = Field(max_length=100)
    resource_id: Optional[str] = Field(default=None, max_length=255)

    old_values: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    new_values: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    severity: AuditSeverity = Field(default=AuditSeverity.low)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_org_action", "organization_id", "action"),
    )

    def snapshot(self) -> dict:
        """JSON-safe view used by the fallback sink"""
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "organization_id": str(self.organization_id) if self.organization_id else None,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "severity": self.severity.value,
            "created_at": self.created_at.isoformat(),
        }
