"""
Get Audit Events Use Case

Retrieves audit events system-wide or for one organization with pagination.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import require_permission
from src.domain.entities import Permission


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events.

    Business Rules:
    - System-wide listing requires system:analytics:view
    - Organization listing requires org:analytics:view in that organization
    - Results ordered by newest first
    - Supports cursor-based pagination
    - Each event includes action, actor, severity, timestamp, old/new values
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor_id: UUID,
        organization_id: Optional[UUID] = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Execute get audit events use case.

        Args:
            actor_id: Principal requesting the log
            organization_id: Organization to list, None for every event
            limit: Maximum number of events to return
            cursor: Pagination cursor (optional)

        Returns:
            Result with events list and next_cursor, or Error
        """
        async with self.uow:
            if organization_id is None:
                required = Permission.view_system_analytics
            else:
                required = Permission.view_org_analytics

            denied = await require_permission(
                self.uow,
                actor_id,
                required,
                organization_id,
                resource_type="audit_log",
            )
            if denied:
                return Return.err(denied)

            events, next_cursor = await self.uow.audit_events.get_paginated(
                organization_id=organization_id, limit=limit, cursor=cursor
            )

            # Actor emails are looked up once per distinct actor
            emails: Dict[UUID, Optional[str]] = {}
            events_list = []
            for event in events:
                actor_email = None
                if event.actor_id:
                    if event.actor_id not in emails:
                        principal = await self.uow.principals.get_by_id(event.actor_id)
                        emails[event.actor_id] = principal.email if principal else None
                    actor_email = emails[event.actor_id]

                events_list.append(
                    {
                        "id": str(event.id),
                        "action": event.action,
                        "actor_id": str(event.actor_id) if event.actor_id else None,
                        "actor_email": actor_email,
                        "organization_id": str(event.organization_id)
                        if event.organization_id
                        else None,
                        "resource_type": event.resource_type,
                        "resource_id": event.resource_id,
                        "severity": event.severity.value,
                        "old_values": event.old_values,
                        "new_values": event.new_values,
                        "ip_address": event.ip_address,
                        "user_agent": event.user_agent,
                        "timestamp": event.created_at.isoformat() + "Z",
                    }
                )

            return Return.ok({"events": events_list, "next_cursor": next_cursor})
