"""
Get Permissions Use Case

Lists what a principal may do, system-wide or within one organization.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.authorization import effective_assignments, granted_permissions
from src.domain.base import utcnow
from src.domain.catalog import role_display_name
from src.domain.entities import RoleKind

from .dtos import PermissionsResponse, RoleSummary


class GetPermissionsUseCase:
    """
    Read-only permission listing.

    Without an organization the result is the union over every effective
    assignment, skipping those in inactive organizations. With one, it matches what the evaluator would allow there:
    empty for an inactive organization, everything for a system admin.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, principal_id: UUID, organization_id: Optional[UUID] = None
    ) -> Result[PermissionsResponse]:
        async with self.uow:
            assignments = await self.uow.role_assignments.get_by_principal_id(principal_id)

            organization = None
            organizations = {}
            if organization_id is not None:
                organization = await self.uow.organizations.get_by_id(organization_id)
                if organization is None:
                    return Return.err(Error("ORGANIZATION_NOT_FOUND", "Organization not found"))
            else:
                organization_ids = list(
                    {a.organization_id for a in assignments if a.organization_id is not None}
                )
                organizations = {
                    org.id: org
                    for org in await self.uow.organizations.get_by_ids(organization_ids)
                }

            now = utcnow()
            effective = effective_assignments(assignments, now)
            permissions = granted_permissions(
                assignments,
                now,
                organization_id=organization_id,
                organization=organization,
                organizations=organizations,
            )

            return Return.ok(
                PermissionsResponse(
                    principal_id=str(principal_id),
                    organization_id=str(organization_id) if organization_id else None,
                    is_system_admin=any(a.role_kind == RoleKind.system_admin for a in effective),
                    permissions=sorted(p.value for p in permissions),
                    roles=[
                        RoleSummary(
                            assignment_id=str(a.id),
                            role_kind=a.role_kind.value,
                            role_name=role_display_name(a.role_kind),
                            organization_id=str(a.organization_id) if a.organization_id else None,
                        )
                        for a in effective
                    ],
                )
            )
