"""
Grant Role Use Case

Grants a role to a principal or changes the role it already holds in a scope.
"""

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.repositories.role_assignment_repository import AssignmentExistsError
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.base import utcnow
from src.domain.catalog import (
    InvalidAssignmentScopeError,
    parse_permissions,
    plan_limits,
    role_display_name,
    validate_assignment_scope,
)
from src.domain.entities import AuditSeverity, Permission, RoleAssignment, RoleKind

from .dtos import GrantRoleResponse, RoleAssignmentView


def assignment_view(assignment: RoleAssignment) -> RoleAssignmentView:
    return RoleAssignmentView(
        assignment_id=str(assignment.id),
        principal_id=str(assignment.principal_id),
        organization_id=str(assignment.organization_id) if assignment.organization_id else None,
        role_kind=assignment.role_kind.value,
        role_name=role_display_name(assignment.role_kind),
        permission_overrides=list(assignment.permission_overrides or []),
        active=assignment.active,
        expires_at=assignment.expires_at.isoformat() if assignment.expires_at else None,
    )


class GrantRoleUseCase:
    """
    Use case for granting or changing a role assignment.

    Business Rules:
    - system_admin is system-wide; org_admin/user need an organization
    - System roles require system:users:manage system-wide; organization
      roles require org:users:manage in that organization
    - Overrides must be known permission strings
    - One row per (principal, organization): a dormant row is reactivated,
      an active one is updated in place
    - New members count against the organization's plan user limit
    - Every change is audited with old and new snapshots
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor_id: UUID,
        principal_id: UUID,
        role_kind: str,
        organization_id: Optional[UUID] = None,
        permission_overrides: Optional[Iterable[str]] = None,
        expires_at: Optional[datetime] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[GrantRoleResponse]:
        """
        Execute grant role use case.

        Args:
            actor_id: Principal making the change
            principal_id: Principal receiving the role
            role_kind: system_admin/org_admin/user
            organization_id: Scope, None for system-wide roles
            permission_overrides: Extra permissions beyond the role defaults
            expires_at: Optional expiry (naive UTC, must be in the future)
            request_meta: Client details for the audit event

        Returns:
            Result with GrantRoleResponse DTO, or Error
        """
        async with self.uow:
            try:
                kind = RoleKind(role_kind)
            except ValueError:
                return Return.err(
                    Error(
                        "INVALID_ROLE",
                        f"Invalid role: {role_kind}. Must be one of: system_admin, org_admin, user",
                    )
                )

            try:
                validate_assignment_scope(kind, organization_id)
            except InvalidAssignmentScopeError as exc:
                return Return.err(Error("INVALID_SCOPE", str(exc)))

            try:
                overrides = [p.value for p in parse_permissions(permission_overrides or [])]
            except ValueError as exc:
                return Return.err(Error("INVALID_PERMISSION", str(exc)))

            now = utcnow()
            if expires_at is not None and expires_at <= now:
                return Return.err(Error("INVALID_EXPIRY", "Expiry must be in the future"))

            if kind == RoleKind.system_admin:
                required = Permission.manage_system_users
            else:
                required = Permission.manage_org_users

            denied = await require_permission(
                self.uow,
                actor_id,
                required,
                organization_id,
                resource_type="role_assignment",
                resource_id=str(principal_id),
                request_meta=request_meta,
            )
            if denied:
                return Return.err(denied)

            principal = await self.uow.principals.get_by_id(principal_id)
            if principal is None:
                return Return.err(Error("PRINCIPAL_NOT_FOUND", "Principal not found"))

            existing = await self.uow.role_assignments.get_by_principal_and_organization(
                principal_id, organization_id
            )

            if organization_id is not None and not (existing and existing.is_effective(now)):
                organization = await self.uow.organizations.get_by_id(organization_id)
                member_count = await self.uow.role_assignments.count_active_by_organization(
                    organization_id, now
                )
                if not plan_limits(organization.subscription_plan).allows_users(member_count):
                    return Return.err(
                        Error("USER_LIMIT_REACHED", "Organization has reached its plan's user limit")
                    )

            old_values = existing.snapshot() if existing else None

            if existing is None:
                assignment = RoleAssignment(
                    principal_id=principal_id,
                    organization_id=organization_id,
                    role_kind=kind,
                    permission_overrides=overrides,
                    expires_at=expires_at,
                    assigned_by=actor_id,
                )
                try:
                    await self.uow.role_assignments.create(assignment)
                except AssignmentExistsError:
                    await self.uow.rollback()
                    return Return.err(
                        Error("ASSIGNMENT_CHANGED", "Role assignment was modified concurrently")
                    )
                action = "role.granted"
            elif not existing.active:
                reactivated = await self.uow.role_assignments.reactivate(
                    existing.id,
                    role_kind=kind,
                    permission_overrides=overrides,
                    expires_at=expires_at,
                    assigned_by=actor_id,
                )
                if not reactivated:
                    return Return.err(
                        Error("ASSIGNMENT_CHANGED", "Role assignment was modified concurrently")
                    )
                assignment = RoleAssignment(
                    id=existing.id,
                    principal_id=principal_id,
                    organization_id=organization_id,
                    role_kind=kind,
                    permission_overrides=overrides,
                    expires_at=expires_at,
                    assigned_by=actor_id,
                    active=True,
                )
                action = "role.reactivated"
            else:
                existing.role_kind = kind
                existing.permission_overrides = overrides
                existing.expires_at = expires_at
                existing.assigned_by = actor_id
                assignment = await self.uow.role_assignments.update(existing)
                action = "role.updated"

            await self.uow.audit_events.create(
                build_audit_event(
                    action=action,
                    resource_type="role_assignment",
                    resource_id=str(assignment.id),
                    actor_id=actor_id,
                    organization_id=organization_id,
                    old_values=old_values,
                    new_values=assignment.snapshot(),
                    severity=AuditSeverity.high if kind == RoleKind.system_admin else AuditSeverity.medium,
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            return Return.ok(GrantRoleResponse(action=action, assignment=assignment_view(assignment)))
