"""
Authorization Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class RoleKind(str, Enum):
    """Role kinds, ordered system_admin > org_admin > user"""

    system_admin = "system_admin"
    org_admin = "org_admin"
    user = "user"


class Permission(str, Enum):
    """Fine-grained capabilities checked by the evaluator"""

    # System administration
    system_admin = "system:admin"
    manage_organizations = "system:organizations:manage"
    manage_system_users = "system:users:manage"
    manage_system_apis = "system:apis:manage"
    view_system_analytics = "system:analytics:view"

    # Organization administration
    org_admin = "org:admin"
    manage_org_users = "org:users:manage"
    manage_org_apis = "org:apis:manage"
    view_org_analytics = "org:analytics:view"
    manage_org_settings = "org:settings:manage"
    manage_org_invitations = "org:invitations:manage"

    # Regular users
    user_basic = "user:basic"
    access_apis = "user:apis:access"
    view_personal_dashboard = "user:dashboard:view"


class SubscriptionPlan(str, Enum):
    """Organization subscription plan"""

    free = "free"
    basic = "basic"
    premium = "premium"
    enterprise = "enterprise"


class InvitationStatus(str, Enum):
    """Invitation status"""

    pending = "pending"
    accepted = "accepted"
    expired = "expired"
    revoked = "revoked"


class AuditSeverity(str, Enum):
    """Severity attached to audit events"""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"
