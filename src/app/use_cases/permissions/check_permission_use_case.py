"""
Check Permission Use Case

Answers "may this principal do X here?" with the evaluator's decision.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.audit_recorder import RequestMeta, decision_event
from src.app.services.authorization_evaluator import AuthorizationEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Permission

from .dtos import CheckPermissionResponse


class CheckPermissionUseCase:
    """Denied checks are audited like any other denial"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        principal_id: UUID,
        permission: str,
        organization_id: Optional[UUID] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> Result[CheckPermissionResponse]:
        async with self.uow:
            try:
                required = Permission(permission)
            except ValueError:
                return Return.err(Error("INVALID_PERMISSION", f"Unknown permission: {permission}"))

            result = await AuthorizationEvaluator(self.uow).authorize(
                principal_id, required, organization_id
            )
            if result.is_err():
                return Return.err(result.error)

            decision = result.value
            if not decision.allowed:
                await self.uow.audit_events.create(
                    decision_event(
                        decision,
                        principal_id,
                        resource_type="permission_check",
                        resource_id=required.value,
                        request_meta=request_meta,
                    )
                )
                await self.uow.commit()

            matched = decision.matched_role
            return Return.ok(
                CheckPermissionResponse(
                    allowed=decision.allowed,
                    reason=decision.reason.value,
                    permission=decision.permission.value,
                    organization_id=str(decision.organization_id) if decision.organization_id else None,
                    matched_role_id=str(matched.id) if matched else None,
                    matched_role_kind=matched.role_kind.value if matched else None,
                )
            )
