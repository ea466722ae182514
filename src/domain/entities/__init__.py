"""
Authorization Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuditSeverity,
    InvitationStatus,
    Permission,
    RoleKind,
    SubscriptionPlan,
)

# Export all entities
from .principal import Principal
from .organization import Organization
from .role_assignment import RoleAssignment
from .invitation import Invitation
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AuditSeverity",
    "InvitationStatus",
    "Permission",
    "RoleKind",
    "SubscriptionPlan",
    # Entities
    "Principal",
    "Organization",
    "RoleAssignment",
    "Invitation",
    "AuditEvent",
]
