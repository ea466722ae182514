"""
Audit API Routes

Handles audit event retrieval endpoints.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.error import parse_uuid, raise_for_error
from src.app.services.identity_resolver import PrincipalContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.depends import get_principal_context, get_unit_of_work

router = APIRouter(prefix="/api", tags=["Audit"])


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    id: str
    action: str
    actor_id: Optional[str]
    actor_email: Optional[str]
    organization_id: Optional[str]
    resource_type: str
    resource_id: Optional[str]
    severity: str
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: str


class AuditEventsResponse(BaseModel):
    """Audit event page"""

    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get(
    "/admin/audit-events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
)
async def get_system_audit_events(
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get Audit Events across every organization

    Query Parameters:
        - limit: Maximum number of events to return (1-100, default 50)
        - cursor: Pagination cursor for fetching next page

    Raises:
        - 403 Forbidden: PERMISSION_DENIED (system:analytics:view required)
    """
    result = await GetAuditEventsUseCase(uow).execute(
        actor_id=principal.principal_id, limit=limit, cursor=cursor
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/org/{org_id}/audit-events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
)
async def get_organization_audit_events(
    org_id: str,
    principal: PrincipalContext = Depends(get_principal_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get Audit Events for one organization

    Raises:
        - 403 Forbidden: PERMISSION_DENIED (org:analytics:view required),
                         ORGANIZATION_INACTIVE
        - 404 Not Found: ORGANIZATION_NOT_FOUND
    """
    organization_id = parse_uuid(org_id, "INVALID_ORGANIZATION_ID", "organization ID")

    result = await GetAuditEventsUseCase(uow).execute(
        actor_id=principal.principal_id,
        organization_id=organization_id,
        limit=limit,
        cursor=cursor,
    )
    if result.is_err():
        raise_for_error(result.error)

    return result.value
