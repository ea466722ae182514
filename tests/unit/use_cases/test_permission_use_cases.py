from uuid import uuid4

import pytest

from src.app.use_cases.permissions import CheckPermissionUseCase, GetPermissionsUseCase
from src.domain.entities import RoleKind
from tests.fixtures.factories import make_assignment, make_organization, make_principal
from tests.utils.audit_assertions import audited_events


@pytest.fixture
def principal():
    return make_principal("u1@example.com")


@pytest.mark.asyncio
async def test_permissions_across_all_assignments(mock_uow, principal):
    org = make_organization()
    mock_uow.role_assignments.get_by_principal_id.return_value = [
        make_assignment(principal, RoleKind.org_admin, org),
        make_assignment(principal, RoleKind.user, make_organization("Other"), active=False),
    ]
    mock_uow.organizations.get_by_ids.return_value = [org]

    result = await GetPermissionsUseCase(mock_uow).execute(principal.id)

    response = result.value
    assert response.is_system_admin is False
    assert "org:users:manage" in response.permissions
    assert not any(p.startswith("system:") for p in response.permissions)
    assert [r.role_kind for r in response.roles] == ["org_admin"]


@pytest.mark.asyncio
async def test_permissions_across_assignments_skip_inactive_organizations(mock_uow, principal):
    active = make_organization("Acme Corp")
    dormant = make_organization("Dormant", active=False)
    mock_uow.role_assignments.get_by_principal_id.return_value = [
        make_assignment(principal, RoleKind.user, active),
        make_assignment(principal, RoleKind.org_admin, dormant),
    ]
    mock_uow.organizations.get_by_ids.return_value = [active, dormant]

    result = await GetPermissionsUseCase(mock_uow).execute(principal.id)

    assert "user:dashboard:view" in result.value.permissions
    assert "org:users:manage" not in result.value.permissions
    assert set(mock_uow.organizations.get_by_ids.call_args.args[0]) == {active.id, dormant.id}


@pytest.mark.asyncio
async def test_permissions_in_inactive_organization_are_empty(mock_uow, principal):
    org = make_organization(active=False)
    mock_uow.role_assignments.get_by_principal_id.return_value = [
        make_assignment(principal, RoleKind.org_admin, org)
    ]
    mock_uow.organizations.get_by_id.return_value = org

    result = await GetPermissionsUseCase(mock_uow).execute(principal.id, org.id)

    assert result.value.permissions == []


@pytest.mark.asyncio
async def test_permissions_for_unknown_organization(mock_uow, principal):
    mock_uow.organizations.get_by_id.return_value = None

    result = await GetPermissionsUseCase(mock_uow).execute(principal.id, uuid4())

    assert result.error.code == "ORGANIZATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_check_allowed_permission(mock_uow, principal):
    org = make_organization()
    assignment = make_assignment(principal, RoleKind.org_admin, org)
    mock_uow.role_assignments.get_by_principal_id.return_value = [assignment]
    mock_uow.organizations.get_by_id.return_value = org

    result = await CheckPermissionUseCase(mock_uow).execute(principal.id, "org:users:manage", org.id)

    response = result.value
    assert response.allowed is True
    assert response.reason == "role_permission"
    assert response.matched_role_id == str(assignment.id)
    assert response.matched_role_kind == "org_admin"
    mock_uow.audit_events.create.assert_not_called()


@pytest.mark.asyncio
async def test_check_denied_permission_is_audited(mock_uow, principal):
    result = await CheckPermissionUseCase(mock_uow).execute(principal.id, "system:admin")

    assert result.value.allowed is False
    assert result.value.reason == "permission_denied"
    event = audited_events(mock_uow)[0]
    assert event.action == "authorization.denied"
    assert event.resource_id == "system:admin"
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_unknown_permission(mock_uow, principal):
    result = await CheckPermissionUseCase(mock_uow).execute(principal.id, "system:everything")

    assert result.error.code == "INVALID_PERMISSION"
