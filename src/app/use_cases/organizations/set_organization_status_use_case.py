"""
Set Organization Status Use Case

Activates or deactivates an organization. While inactive, every
organization-scoped permission check for it is denied.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.entities import AuditSeverity, Permission

from .create_organization_use_case import organization_view
from .dtos import SetOrganizationStatusResponse


class SetOrganizationStatusUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor_id: UUID,
        organization_id: UUID,
        active: bool,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[SetOrganizationStatusResponse]:
        async with self.uow:
            denied = await require_permission(
                self.uow,
                actor_id,
                Permission.manage_organizations,
                resource_type="organization",
                resource_id=str(organization_id),
                request_meta=request_meta,
            )
            if denied:
                return Return.err(denied)

            organization = await self.uow.organizations.get_by_id(organization_id)
            if organization is None:
                return Return.err(Error("ORGANIZATION_NOT_FOUND", "Organization not found"))

            if organization.active == active:
                return Return.ok(
                    SetOrganizationStatusResponse(
                        organization=organization_view(organization), changed=False
                    )
                )

            organization.active = active
            await self.uow.organizations.update(organization)

            await self.uow.audit_events.create(
                build_audit_event(
                    action="organization.activated" if active else "organization.deactivated",
                    resource_type="organization",
                    resource_id=str(organization.id),
                    actor_id=actor_id,
                    organization_id=organization.id,
                    old_values={"active": not active},
                    new_values={"active": active},
                    severity=AuditSeverity.medium if active else AuditSeverity.high,
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            return Return.ok(
                SetOrganizationStatusResponse(organization=organization_view(organization), changed=True)
            )
