"""
Authorization Policy

Pure decision logic: given a principal's role assignments (and, for scoped
checks, the target organization) decide allow/deny with a reason. No I/O and
no logging happen here; callers load the inputs and record the outcome.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping, Optional
from uuid import UUID

from src.domain.catalog import effective_permissions, privilege_rank
from src.domain.entities import Organization, Permission, RoleAssignment, RoleKind


class DecisionReason(str, Enum):
    """Machine-readable reason attached to every decision"""

    system_admin = "system_admin"
    system_admin_override = "system_admin_override"
    role_permission = "role_permission"
    permission_denied = "permission_denied"
    organization_inactive = "organization_inactive"
    organization_not_found = "organization_not_found"


@dataclass(frozen=True)
class Decision:
    """Outcome of one authorization check"""

    allowed: bool
    reason: DecisionReason
    permission: Permission
    organization_id: Optional[UUID] = None
    matched_role: Optional[RoleAssignment] = None


def _allow(permission, reason, organization_id, matched_role) -> Decision:
    return Decision(
        allowed=True,
        reason=reason,
        permission=permission,
        organization_id=organization_id,
        matched_role=matched_role,
    )


def _deny(permission, reason, organization_id=None) -> Decision:
    return Decision(
        allowed=False,
        reason=reason,
        permission=permission,
        organization_id=organization_id,
    )


def _highest(assignments: list[RoleAssignment]) -> RoleAssignment:
    # Ties keep the earliest assignment so repeated calls pick the same row
    return max(assignments, key=lambda a: (privilege_rank(a.role_kind), -a.assigned_at.timestamp()))


def effective_assignments(assignments: Iterable[RoleAssignment], now: datetime) -> list[RoleAssignment]:
    """Assignments that are active and not expired"""
    return [a for a in assignments if a.is_effective(now)]


def _system_assignments(assignments: list[RoleAssignment]) -> list[RoleAssignment]:
    return [
        a
        for a in assignments
        if a.role_kind == RoleKind.system_admin and a.organization_id is None
    ]


def _granting(assignments: list[RoleAssignment], permission: Permission) -> list[RoleAssignment]:
    return [
        a
        for a in assignments
        if permission in effective_permissions(a.role_kind, a.permission_overrides)
    ]


def evaluate(
    assignments: Iterable[RoleAssignment],
    permission: Permission,
    now: datetime,
    organization_id: Optional[UUID] = None,
    organization: Optional[Organization] = None,
) -> Decision:
    """
    Decide whether the holder of ``assignments`` has ``permission``.

    System-wide check (organization_id is None): only system_admin
    assignments count, and the permission must be in their effective set.

    Organization-scoped check: the organization must exist and be active.
    Any system_admin assignment then satisfies the check; otherwise the
    union of effective sets of assignments scoped to exactly that
    organization must contain the permission.

    Args:
        assignments: All role assignments of the principal (any state)
        permission: Permission being checked
        now: Reference time for expiry
        organization_id: Organization scope, None for system-wide
        organization: The loaded organization for organization_id, if any

    Returns:
        Decision
    """
    permission = Permission(permission)
    effective = effective_assignments(assignments, now)
    system_roles = _system_assignments(effective)

    if organization_id is None:
        granting = _granting(system_roles, permission)
        if granting:
            return _allow(permission, DecisionReason.system_admin, None, _highest(granting))
        return _deny(permission, DecisionReason.permission_denied)

    if organization is None or organization.id != organization_id:
        return _deny(permission, DecisionReason.organization_not_found, organization_id)

    if not organization.active:
        return _deny(permission, DecisionReason.organization_inactive, organization_id)

    if system_roles:
        return _allow(
            permission,
            DecisionReason.system_admin_override,
            organization_id,
            _highest(system_roles),
        )

    scoped = [a for a in effective if a.organization_id == organization_id]
    granting = _granting(scoped, permission)
    if granting:
        return _allow(permission, DecisionReason.role_permission, organization_id, _highest(granting))

    return _deny(permission, DecisionReason.permission_denied, organization_id)


def evaluate_any_organization(
    assignments: Iterable[RoleAssignment],
    permission: Permission,
    now: datetime,
    organizations: Mapping[UUID, Organization],
) -> Decision:
    """
    Decide a personal check that any active organization can satisfy.

    Used for routes such as the personal dashboard, which belong to the
    principal rather than to one organization. A system_admin holding the
    permission satisfies it; otherwise the first active organization (by
    privilege, then assignment age) whose scoped assignment grants it does.
    Inactive or unknown organizations never contribute.
    """
    permission = Permission(permission)
    effective = effective_assignments(assignments, now)

    system_granting = _granting(_system_assignments(effective), permission)
    if system_granting:
        return _allow(permission, DecisionReason.system_admin, None, _highest(system_granting))

    candidates = []
    for assignment in _granting(effective, permission):
        organization = organizations.get(assignment.organization_id)
        if organization is not None and organization.active:
            candidates.append(assignment)

    if candidates:
        matched = _highest(candidates)
        return _allow(permission, DecisionReason.role_permission, matched.organization_id, matched)

    return _deny(permission, DecisionReason.permission_denied)


def granted_permissions(
    assignments: Iterable[RoleAssignment],
    now: datetime,
    organization_id: Optional[UUID] = None,
    organization: Optional[Organization] = None,
    organizations: Optional[Mapping[UUID, Organization]] = None,
) -> frozenset:
    """
    Everything the principal may do in a scope.

    With an organization: empty when it is missing or inactive, every
    permission for a system admin, otherwise the union of that
    organization's assignments. Without one: the union of every effective
    system-wide assignment and every effective assignment whose
    organization is in `organizations` and active.
    """
    effective = effective_assignments(assignments, now)

    if organization_id is None:
        organizations = organizations or {}
        granted: set = set()
        for assignment in effective:
            if assignment.organization_id is not None:
                scope = organizations.get(assignment.organization_id)
                if scope is None or not scope.active:
                    continue
            granted |= effective_permissions(assignment.role_kind, assignment.permission_overrides)
        return frozenset(granted)

    if organization is None or not organization.active:
        return frozenset()

    if _system_assignments(effective):
        return frozenset(Permission)

    granted = set()
    for assignment in effective:
        if assignment.organization_id == organization_id:
            granted |= effective_permissions(assignment.role_kind, assignment.permission_overrides)
    return frozenset(granted)
