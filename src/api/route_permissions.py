"""
Route permission table

Static mapping from URL path prefixes to the permission that guards them.
The table is a plain tuple so it can be listed and reviewed in one place;
the route guard is the only consumer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from src.domain.entities import Permission, RoleKind

API_PREFIX = "/api"
ORG_ID_PLACEHOLDER = "{org_id}"


class ScopeMode(str, Enum):
    """Where the organization scope of a check comes from"""

    none = "none"  # system-wide check
    path = "path"  # {org_id} path segment
    any_organization = "any_organization"  # satisfied by any active organization


@dataclass(frozen=True)
class RouteRule:
    """
    One row of the route table.

    permission None means the route only needs an authenticated principal.
    """

    prefix: str
    permission: Optional[Permission]
    scope: ScopeMode = ScopeMode.none

    @property
    def segments(self) -> Tuple[str, ...]:
        return _split(self.prefix)


@dataclass(frozen=True)
class RouteMatch:
    rule: RouteRule
    organization_id: Optional[str] = None


PAGE_RULES: Tuple[RouteRule, ...] = (
    RouteRule("/admin", Permission.system_admin),
    RouteRule("/admin/organizations", Permission.manage_organizations),
    RouteRule("/admin/users", Permission.manage_system_users),
    RouteRule("/admin/apis", Permission.manage_system_apis),
    RouteRule("/admin/analytics", Permission.view_system_analytics),
    RouteRule("/org/{org_id}", Permission.user_basic, ScopeMode.path),
    RouteRule("/org/{org_id}/users", Permission.manage_org_users, ScopeMode.path),
    RouteRule("/org/{org_id}/apis", Permission.access_apis, ScopeMode.path),
    RouteRule("/org/{org_id}/invitations", Permission.manage_org_invitations, ScopeMode.path),
    RouteRule("/org/{org_id}/analytics", Permission.view_org_analytics, ScopeMode.path),
    RouteRule("/org/{org_id}/settings", Permission.manage_org_settings, ScopeMode.path),
    RouteRule("/dashboard", Permission.view_personal_dashboard, ScopeMode.any_organization),
    RouteRule("/invite/{token}", None),
)

API_RULES: Tuple[RouteRule, ...] = tuple(
    RouteRule(API_PREFIX + rule.prefix, rule.permission, rule.scope)
    for rule in PAGE_RULES
    if not rule.prefix.startswith("/invite")
) + (
    RouteRule("/api/me", None),
    RouteRule("/api/auth/permissions", None),
    RouteRule("/api/invitations", None),
    RouteRule("/api/admin/audit-events", Permission.view_system_analytics),
    RouteRule("/api/org/{org_id}/audit-events", Permission.view_org_analytics, ScopeMode.path),
)

ROUTE_RULES: Tuple[RouteRule, ...] = PAGE_RULES + API_RULES

PUBLIC_PATHS = frozenset({"/"})

PUBLIC_PREFIXES = (
    "/login",
    "/signup",
    "/auth/callback",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
    "/static/",
    "/_next/",
)

STATIC_ASSET_EXTENSIONS = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico")


def _split(path: str) -> Tuple[str, ...]:
    return tuple(segment for segment in path.split("/") if segment)


def _has_prefix(path: str, prefix: str) -> bool:
    if prefix.endswith("/"):
        return path.startswith(prefix)
    return path == prefix or path.startswith(prefix + "/")


def is_api_path(path: str) -> bool:
    return _has_prefix(path, API_PREFIX)


def is_public(path: str) -> bool:
    """Paths served without any identity lookup"""
    if path in PUBLIC_PATHS:
        return True
    if any(_has_prefix(path, prefix) for prefix in PUBLIC_PREFIXES):
        return True
    return not is_api_path(path) and path.lower().endswith(STATIC_ASSET_EXTENSIONS)


def match_route(path: str) -> Optional[RouteMatch]:
    """
    Find the rule guarding a path.

    Rules match whole segments from the start of the path; the rule with
    the most segments wins. Placeholders match any single segment and the
    {org_id} segment is captured as the organization scope.

    Returns:
        RouteMatch, or None for paths no rule covers
    """
    segments = _split(path)
    best: Optional[RouteMatch] = None
    best_length = -1

    for rule in ROUTE_RULES:
        rule_segments = rule.segments
        if len(rule_segments) > len(segments) or len(rule_segments) <= best_length:
            continue

        organization_id = None
        for expected, actual in zip(rule_segments, segments):
            if expected == ORG_ID_PLACEHOLDER:
                organization_id = actual
            elif expected.startswith("{"):
                continue
            elif expected != actual:
                break
        else:
            best = RouteMatch(rule=rule, organization_id=organization_id)
            best_length = len(rule_segments)

    return best


def landing_path(role_assignments) -> str:
    """Where a principal is sent after a denied page request"""
    if any(a.role_kind == RoleKind.system_admin for a in role_assignments):
        return "/admin"
    if any(a.organization_id is not None for a in role_assignments):
        return "/dashboard"
    return "/onboarding"
