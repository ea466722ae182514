"""
Audit Recorder

Append-only recording of authorization decisions. Mutating use cases write
their own audit events inside their unit of work; the recorder covers
events that have no surrounding transaction, such as route-guard decisions.
"""

import asyncio
import json
import logging
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import STORE_ERRORS, UnitOfWorkScope
from src.domain.authorization import Decision
from src.domain.entities import AuditEvent, AuditSeverity

logger = logging.getLogger(__name__)

# Secondary sink for events the primary store could not take
fallback_logger = logging.getLogger("src.audit.fallback")


class RequestMeta(BaseModel):
    """Client details copied onto audit events"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def build_audit_event(
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    actor_id: Optional[UUID] = None,
    organization_id: Optional[UUID] = None,
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
    severity: AuditSeverity = AuditSeverity.low,
    request_meta: Optional[RequestMeta] = None,
) -> AuditEvent:
    meta = request_meta or RequestMeta()
    return AuditEvent(
        actor_id=actor_id,
        organization_id=organization_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        old_values=old_values,
        new_values=new_values,
        ip_address=meta.ip_address,
        user_agent=meta.user_agent,
        severity=severity,
    )


def decision_event(
    decision: Decision,
    actor_id: Optional[UUID],
    resource_type: str,
    resource_id: Optional[str],
    request_meta: Optional[RequestMeta] = None,
    extra: Optional[dict] = None,
) -> AuditEvent:
    """Audit event for one authorization decision; denials are high severity"""
    new_values = {
        "permission": decision.permission.value,
        "reason": decision.reason.value,
        "matched_role_id": str(decision.matched_role.id) if decision.matched_role else None,
    }
    if extra:
        new_values.update(extra)
    return build_audit_event(
        action="authorization.allowed" if decision.allowed else "authorization.denied",
        resource_type=resource_type,
        resource_id=resource_id,
        actor_id=actor_id,
        organization_id=decision.organization_id,
        new_values=new_values,
        severity=AuditSeverity.low if decision.allowed else AuditSeverity.high,
        request_meta=request_meta,
    )


class AuditRecorder:
    """
    Write audit events in their own transaction.

    A failed or timed-out write is never dropped silently: the full event is
    escalated to the fallback sink at CRITICAL level and AUDIT_WRITE_FAILED
    is returned. Callers may ignore the result; the recorder never raises
    store errors.
    """

    def __init__(self, uow_scope: UnitOfWorkScope, timeout: Optional[float] = None):
        self.uow_scope = uow_scope
        self.timeout = timeout

    async def record(self, event: AuditEvent) -> Result[None]:
        """
        Append one audit event.

        Args:
            event: Event to store

        Returns:
            Result ok, or Error AUDIT_WRITE_FAILED after escalation
        """
        try:
            await asyncio.wait_for(self._write(event), self.timeout)
        except asyncio.TimeoutError:
            return self._escalate(event, f"timed out after {self.timeout}s")
        except STORE_ERRORS as exc:
            return self._escalate(event, repr(exc))

        logger.debug(f"Audit event recorded: {event.action} {event.resource_id}")
        return Return.ok()

    async def _write(self, event: AuditEvent) -> None:
        async with self.uow_scope() as uow:
            async with uow:
                await uow.audit_events.create(event)
                await uow.commit()

    def _escalate(self, event: AuditEvent, reason: str) -> Result[None]:
        fallback_logger.critical(
            f"Audit write failed, severity=high event={json.dumps(event.snapshot())} "
            f"error={reason}"
        )
        return Return.err(Error("AUDIT_WRITE_FAILED", "Audit event could not be stored"))
