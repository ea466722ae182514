"""
Permission checks shared by use cases.

Every use case that acts on behalf of a principal asks the evaluator first.
Denials are written to the audit log and committed right away, before the
use case returns, so they survive the rollback of the surrounding unit of work.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error
from src.app.services.audit_recorder import RequestMeta, decision_event
from src.app.services.authorization_evaluator import AuthorizationEvaluator
from src.app.services.unit_of_work import STORE_ERRORS, UnitOfWork
from src.domain.authorization import DecisionReason
from src.domain.entities import Permission

DENIAL_ERRORS = {
    DecisionReason.permission_denied: ("PERMISSION_DENIED", "Insufficient permissions"),
    DecisionReason.organization_inactive: ("ORGANIZATION_INACTIVE", "Organization is not active"),
    DecisionReason.organization_not_found: ("ORGANIZATION_NOT_FOUND", "Organization not found"),
}


async def require_permission(
    uow: UnitOfWork,
    actor_id: UUID,
    permission: Permission,
    organization_id: Optional[UUID] = None,
    resource_type: str = "action",
    resource_id: Optional[str] = None,
    request_meta: Optional[RequestMeta] = None,
) -> Optional[Error]:
    """
    Check that actor_id holds permission in the given scope.

    Returns:
        None when allowed, otherwise the Error the use case should return
    """
    result = await AuthorizationEvaluator(uow).authorize(actor_id, permission, organization_id)
    if result.is_err():
        return result.error

    decision = result.value
    if decision.allowed:
        return None

    try:
        await uow.audit_events.create(
            decision_event(decision, actor_id, resource_type, resource_id, request_meta)
        )
        await uow.commit()
    except STORE_ERRORS:
        return Error("STORE_UNAVAILABLE", "Audit store is unavailable")

    code, message = DENIAL_ERRORS[decision.reason]
    if decision.reason == DecisionReason.permission_denied:
        message = f"{message}: {permission.value} required"
    return Error(code, message)
