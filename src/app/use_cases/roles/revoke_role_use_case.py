"""
Revoke Role Use Case

Soft-deactivates a role assignment. Rows are never deleted.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.entities import AuditSeverity, Permission, RoleKind

from .dtos import RevokeRoleResponse


class RevokeRoleUseCase:
    """
    Use case for revoking a role assignment.

    The assignment is addressed either by id or by (principal, organization).

    Business Rules:
    - System roles require system:users:manage; organization roles
      require org:users:manage in their organization
    - Permission is checked before the assignment's existence is revealed;
      an unknown assignment id is treated as system scope
    - A principal cannot revoke their own system_admin assignment
    - active True -> False is a compare-and-set; a second revoke returns
      ASSIGNMENT_NOT_FOUND
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor_id: UUID,
        principal_id: UUID,
        organization_id: Optional[UUID] = None,
        assignment_id: Optional[UUID] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[RevokeRoleResponse]:
        async with self.uow:
            if assignment_id is None:
                denied = await self._authorize(
                    actor_id, organization_id, str(principal_id), request_meta
                )
                if denied:
                    return Return.err(denied)
                assignment = await self.uow.role_assignments.get_by_principal_and_organization(
                    principal_id, organization_id
                )
            else:
                assignment = await self.uow.role_assignments.get_by_id(assignment_id)
                if assignment and assignment.principal_id != principal_id:
                    assignment = None
                # An unknown id is only reported to system user managers
                denied = await self._authorize(
                    actor_id,
                    assignment.organization_id if assignment else None,
                    str(assignment_id),
                    request_meta,
                )
                if denied:
                    return Return.err(denied)

            if assignment is None or not assignment.active:
                return Return.err(Error("ASSIGNMENT_NOT_FOUND", "Active role assignment not found"))

            if assignment.role_kind == RoleKind.system_admin and assignment.principal_id == actor_id:
                return Return.err(
                    Error("CANNOT_REVOKE_SELF", "You cannot revoke your own system administrator role")
                )

            old_values = assignment.snapshot()

            revoked = await self.uow.role_assignments.deactivate(assignment.id)
            if not revoked:
                return Return.err(Error("ASSIGNMENT_NOT_FOUND", "Active role assignment not found"))

            await self.uow.audit_events.create(
                build_audit_event(
                    action="role.revoked",
                    resource_type="role_assignment",
                    resource_id=str(assignment.id),
                    actor_id=actor_id,
                    organization_id=assignment.organization_id,
                    old_values=old_values,
                    new_values={"active": False},
                    severity=AuditSeverity.high
                    if assignment.role_kind == RoleKind.system_admin
                    else AuditSeverity.medium,
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            return Return.ok(RevokeRoleResponse(assignment_id=str(assignment.id), active=False))

    async def _authorize(
        self,
        actor_id: UUID,
        organization_id: Optional[UUID],
        resource_id: str,
        request_meta: Optional[RequestMeta],
    ) -> Optional[Error]:
        if organization_id is None:
            required = Permission.manage_system_users
        else:
            required = Permission.manage_org_users
        return await require_permission(
            self.uow,
            actor_id,
            required,
            organization_id,
            resource_type="role_assignment",
            resource_id=resource_id,
            request_meta=request_meta,
        )
