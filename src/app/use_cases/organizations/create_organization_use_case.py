"""
Create Organization Use Case
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.audit_recorder import RequestMeta, build_audit_event
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.catalog import generate_slug, is_valid_slug, plan_limits
from src.domain.entities import AuditSeverity, Organization, Permission, SubscriptionPlan

from .dtos import OrganizationView


def organization_view(organization: Organization) -> OrganizationView:
    limits = plan_limits(organization.subscription_plan)
    return OrganizationView(
        organization_id=str(organization.id),
        name=organization.name,
        slug=organization.slug,
        subscription_plan=organization.subscription_plan.value,
        active=organization.active,
        max_users=limits.max_users,
        max_apis=limits.max_apis,
    )


class CreateOrganizationUseCase:
    """
    Use case for creating organizations.

    Business Rules:
    - Requires system:organizations:manage (system-wide)
    - Slug defaults to one derived from the name
    - Slug must be 3-50 chars of [a-z0-9-] and unique
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor_id: UUID,
        name: str,
        slug: Optional[str] = None,
        subscription_plan: str = SubscriptionPlan.free.value,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[OrganizationView]:
        async with self.uow:
            denied = await require_permission(
                self.uow,
                actor_id,
                Permission.manage_organizations,
                resource_type="organization",
                request_meta=request_meta,
            )
            if denied:
                return Return.err(denied)

            name = name.strip()
            if not name:
                return Return.err(Error("INVALID_NAME", "Organization name is required"))

            slug = (slug or generate_slug(name)).strip().lower()
            if not is_valid_slug(slug):
                return Return.err(
                    Error(
                        "INVALID_SLUG",
                        "Slug must be 3-50 characters of lowercase letters, numbers and hyphens",
                    )
                )

            try:
                plan = SubscriptionPlan(subscription_plan)
            except ValueError:
                return Return.err(
                    Error("INVALID_PLAN", f"Unknown subscription plan: {subscription_plan}")
                )

            if await self.uow.organizations.get_by_slug(slug):
                return Return.err(Error("SLUG_TAKEN", "Organization slug already exists"))

            organization = Organization(
                name=name,
                slug=slug,
                subscription_plan=plan,
                created_by=actor_id,
            )
            await self.uow.organizations.create(organization)

            await self.uow.audit_events.create(
                build_audit_event(
                    action="organization.created",
                    resource_type="organization",
                    resource_id=str(organization.id),
                    actor_id=actor_id,
                    organization_id=organization.id,
                    new_values={"name": name, "slug": slug, "subscription_plan": plan.value},
                    severity=AuditSeverity.medium,
                    request_meta=request_meta,
                )
            )

            await self.uow.commit()

            return Return.ok(organization_view(organization))
