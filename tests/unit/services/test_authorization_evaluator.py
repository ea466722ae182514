from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from src.app.services.authorization_evaluator import AuthorizationEvaluator
from src.domain.authorization import DecisionReason
from src.domain.entities import Permission, RoleKind
from tests.fixtures.factories import make_assignment, make_organization, make_principal


@pytest.mark.asyncio
async def test_authorize_within_organization(mock_uow):
    principal = make_principal()
    org = make_organization()
    assignment = make_assignment(principal, RoleKind.org_admin, org)
    mock_uow.role_assignments.get_by_principal_id.return_value = [assignment]
    mock_uow.organizations.get_by_id.return_value = org

    result = await AuthorizationEvaluator(mock_uow).authorize(
        principal.id, Permission.manage_org_users, org.id
    )

    assert result.is_ok()
    assert result.value.allowed
    assert result.value.matched_role is assignment
    mock_uow.organizations.get_by_id.assert_awaited_once_with(org.id)


@pytest.mark.asyncio
async def test_authorize_system_wide_skips_organization_lookup(mock_uow):
    principal = make_principal()
    mock_uow.role_assignments.get_by_principal_id.return_value = [
        make_assignment(principal, RoleKind.system_admin)
    ]

    result = await AuthorizationEvaluator(mock_uow).authorize(
        principal.id, Permission.manage_organizations
    )

    assert result.value.allowed
    assert result.value.reason == DecisionReason.system_admin
    mock_uow.organizations.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_organization_is_denied(mock_uow):
    mock_uow.organizations.get_by_id.return_value = None

    result = await AuthorizationEvaluator(mock_uow).authorize(uuid4(), Permission.user_basic, uuid4())

    assert result.is_ok()
    assert not result.value.allowed
    assert result.value.reason == DecisionReason.organization_not_found


@pytest.mark.asyncio
async def test_store_failure_returns_store_unavailable(mock_uow):
    mock_uow.role_assignments.get_by_principal_id.side_effect = SQLAlchemyError("down")

    result = await AuthorizationEvaluator(mock_uow).authorize(uuid4(), Permission.user_basic)

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_authorize_any_organization_loads_assigned_organizations(mock_uow):
    principal = make_principal()
    org = make_organization()
    mock_uow.role_assignments.get_by_principal_id.return_value = [
        make_assignment(principal, RoleKind.user, org)
    ]
    mock_uow.organizations.get_by_ids.return_value = [org]

    result = await AuthorizationEvaluator(mock_uow).authorize_any_organization(
        principal.id, Permission.view_personal_dashboard
    )

    assert result.value.allowed
    assert result.value.organization_id == org.id
    mock_uow.organizations.get_by_ids.assert_awaited_once_with([org.id])


@pytest.mark.asyncio
async def test_evaluator_never_writes(mock_uow):
    principal = make_principal()
    mock_uow.role_assignments.get_by_principal_id.return_value = []

    await AuthorizationEvaluator(mock_uow).authorize(principal.id, Permission.system_admin)

    mock_uow.commit.assert_not_called()
    mock_uow.audit_events.create.assert_not_called()
