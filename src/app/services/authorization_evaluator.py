"""
Authorization Evaluator

Loads a principal's role assignments (and the target organization) from the
store and applies the pure policy in src.domain.authorization. Holds no
state between calls and never writes, so one instance may serve concurrent
requests. Recording the outcome is the caller's job.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import STORE_ERRORS, UnitOfWork
from src.domain.authorization import Decision, evaluate, evaluate_any_organization
from src.domain.base import utcnow
from src.domain.entities import Permission


class AuthorizationEvaluator:
    """
    Decide allow/deny for (principal, permission, organization scope).

    A denial is a normal Decision(allowed=False). The only error is
    STORE_UNAVAILABLE, returned when the store raises; callers must then
    fail closed.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def authorize(
        self,
        principal_id: UUID,
        permission: Permission,
        organization_id: Optional[UUID] = None,
    ) -> Result[Decision]:
        """
        Authorize a system-wide (organization_id=None) or organization-scoped check.

        Args:
            principal_id: Principal being evaluated
            permission: Required permission
            organization_id: Organization scope, None for system-wide actions

        Returns:
            Result with Decision, or Error STORE_UNAVAILABLE
        """
        try:
            assignments = await self.uow.role_assignments.get_by_principal_id(principal_id)
            organization = None
            if organization_id is not None:
                organization = await self.uow.organizations.get_by_id(organization_id)
        except STORE_ERRORS:
            return Return.err(Error("STORE_UNAVAILABLE", "Role assignment store is unavailable"))

        return Return.ok(
            evaluate(
                assignments,
                permission,
                utcnow(),
                organization_id=organization_id,
                organization=organization,
            )
        )

    async def authorize_any_organization(
        self, principal_id: UUID, permission: Permission
    ) -> Result[Decision]:
        """
        Authorize a personal action satisfiable from any active organization.

        Returns:
            Result with Decision, or Error STORE_UNAVAILABLE
        """
        try:
            assignments = await self.uow.role_assignments.get_by_principal_id(principal_id)
            organization_ids = list(
                {a.organization_id for a in assignments if a.organization_id is not None}
            )
            organizations = await self.uow.organizations.get_by_ids(organization_ids)
        except STORE_ERRORS:
            return Return.err(Error("STORE_UNAVAILABLE", "Role assignment store is unavailable"))

        return Return.ok(
            evaluate_any_organization(
                assignments,
                permission,
                utcnow(),
                {organization.id: organization for organization in organizations},
            )
        )
