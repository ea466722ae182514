"""
Role & Permission Catalog

Compiled constant tables mapping role kinds to their default permissions
and subscription plans to their limits. Nothing here is configurable at
runtime: every evaluator in a deployment must see the same table.
"""

import re
from types import MappingProxyType
from typing import Iterable, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel

from src.domain.entities.enums import Permission, RoleKind, SubscriptionPlan


class UnknownRoleKindError(Exception):
    """Raised for a role kind the catalog does not define (programming error)"""


class InvalidAssignmentScopeError(ValueError):
    """Raised when a role kind is paired with the wrong organization scope"""


_USER_PERMISSIONS = frozenset(
    {
        Permission.user_basic,
        Permission.access_apis,
        Permission.view_personal_dashboard,
    }
)

_ORG_ADMIN_PERMISSIONS = _USER_PERMISSIONS | frozenset(
    {
        Permission.org_admin,
        Permission.manage_org_users,
        Permission.manage_org_apis,
        Permission.view_org_analytics,
        Permission.manage_org_settings,
        Permission.manage_org_invitations,
    }
)

_SYSTEM_ADMIN_PERMISSIONS = _ORG_ADMIN_PERMISSIONS | frozenset(
    {
        Permission.system_admin,
        Permission.manage_organizations,
        Permission.manage_system_users,
        Permission.manage_system_apis,
        Permission.view_system_analytics,
    }
)

ROLE_PERMISSIONS: Mapping[RoleKind, frozenset] = MappingProxyType(
    {
        RoleKind.system_admin: _SYSTEM_ADMIN_PERMISSIONS,
        RoleKind.org_admin: _ORG_ADMIN_PERMISSIONS,
        RoleKind.user: _USER_PERMISSIONS,
    }
)

_PRIVILEGE_RANK: Mapping[RoleKind, int] = MappingProxyType(
    {
        RoleKind.system_admin: 3,
        RoleKind.org_admin: 2,
        RoleKind.user: 1,
    }
)

if set(ROLE_PERMISSIONS) != set(RoleKind) or set(_PRIVILEGE_RANK) != set(RoleKind):
    raise RuntimeError("Role catalog does not cover every RoleKind")


class PlanLimits(BaseModel):
    """Numeric limits implied by a subscription plan (-1 = unlimited)"""

    max_users: int
    max_apis: int

    def allows_users(self, count: int) -> bool:
        return self.max_users == -1 or count < self.max_users


PLAN_LIMITS: Mapping[SubscriptionPlan, PlanLimits] = MappingProxyType(
    {
        SubscriptionPlan.free: PlanLimits(max_users=5, max_apis=2),
        SubscriptionPlan.basic: PlanLimits(max_users=25, max_apis=10),
        SubscriptionPlan.premium: PlanLimits(max_users=100, max_apis=50),
        SubscriptionPlan.enterprise: PlanLimits(max_users=-1, max_apis=-1),
    }
)

ROLE_DISPLAY_NAMES: Mapping[RoleKind, str] = MappingProxyType(
    {
        RoleKind.system_admin: "System Administrator",
        RoleKind.org_admin: "Organization Administrator",
        RoleKind.user: "User",
    }
)

PERMISSION_DISPLAY_NAMES: Mapping[Permission, str] = MappingProxyType(
    {
        Permission.system_admin: "System Administration",
        Permission.manage_organizations: "Manage Organizations",
        Permission.manage_system_users: "Manage System Users",
        Permission.manage_system_apis: "Manage System APIs",
        Permission.view_system_analytics: "View System Analytics",
        Permission.org_admin: "Organization Administration",
        Permission.manage_org_users: "Manage Organization Users",
        Permission.manage_org_apis: "Manage Organization APIs",
        Permission.view_org_analytics: "View Organization Analytics",
        Permission.manage_org_settings: "Manage Organization Settings",
        Permission.manage_org_invitations: "Manage User Invitations",
        Permission.user_basic: "Basic User Access",
        Permission.access_apis: "Access APIs",
        Permission.view_personal_dashboard: "View Personal Dashboard",
    }
)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


def _coerce_role_kind(role_kind) -> RoleKind:
    try:
        return RoleKind(role_kind)
    except ValueError:
        raise UnknownRoleKindError(f"Unknown role kind: {role_kind!r}") from None


def default_permissions(role_kind: RoleKind) -> frozenset:
    """
    Default permission set for a role kind.

    Raises:
        UnknownRoleKindError: role_kind is not a RoleKind
    """
    return ROLE_PERMISSIONS[_coerce_role_kind(role_kind)]


def effective_permissions(role_kind: RoleKind, overrides: Optional[Iterable[str]]) -> frozenset:
    """Role defaults unioned with explicit overrides; unknown overrides grant nothing"""
    granted = set(default_permissions(role_kind))
    for value in overrides or ():
        try:
            granted.add(Permission(value))
        except ValueError:
            continue
    return frozenset(granted)


def privilege_rank(role_kind: RoleKind) -> int:
    """Higher is more privileged: system_admin > org_admin > user"""
    return _PRIVILEGE_RANK[_coerce_role_kind(role_kind)]


def validate_assignment_scope(role_kind: RoleKind, organization_id: Optional[UUID]) -> None:
    """
    Enforce the role/scope pairing.

    Raises:
        InvalidAssignmentScopeError: system_admin with an organization, or an
            organization role without one
    """
    kind = _coerce_role_kind(role_kind)
    if kind == RoleKind.system_admin and organization_id is not None:
        raise InvalidAssignmentScopeError("system_admin assignments are system-wide")
    if kind != RoleKind.system_admin and organization_id is None:
        raise InvalidAssignmentScopeError(f"{kind.value} assignments require an organization")


def parse_permissions(values: Iterable[str]) -> list[Permission]:
    """
    Parse permission strings strictly.

    Raises:
        ValueError: a value is not a known permission
    """
    return [Permission(value) for value in values]


def plan_limits(plan: SubscriptionPlan) -> PlanLimits:
    return PLAN_LIMITS[SubscriptionPlan(plan)]


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_PATTERN.match(slug)) and 3 <= len(slug) <= 50


def generate_slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug).strip("-")


def role_display_name(role_kind: RoleKind) -> str:
    return ROLE_DISPLAY_NAMES[_coerce_role_kind(role_kind)]


def permission_display_name(permission: Permission) -> str:
    return PERMISSION_DISPLAY_NAMES.get(Permission(permission), str(permission))
