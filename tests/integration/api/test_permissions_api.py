import pytest
from httpx import AsyncClient

from src.domain.entities import AuditEvent, RoleKind
from tests.fixtures.seed import auth_headers


@pytest.mark.asyncio
async def test_me_lists_roles_and_system_permissions(client: AsyncClient, seed):
    admin = await seed.principal("system_admin")
    acme = await seed.organization("acme")
    await seed.assign(admin, RoleKind.system_admin)
    await seed.assign(admin, RoleKind.org_admin, acme)

    response = await client.get("/api/me", headers=auth_headers(admin))

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "root@platform.io"
    assert data["is_system_admin"] is True
    assert "system:organizations:manage" in data["permissions"]
    assert data["permissions"] == sorted(data["permissions"])
    assert {role["role_kind"] for role in data["roles"]} == {"system_admin", "org_admin"}


@pytest.mark.asyncio
async def test_member_permissions_without_and_with_organization(client: AsyncClient, seed):
    member = await seed.principal("member")
    acme = await seed.organization("acme")
    await seed.assign(member, RoleKind.user, acme)

    response = await client.get("/api/me", headers=auth_headers(member))

    assert response.json()["is_system_admin"] is False
    assert "system:admin" not in response.json()["permissions"]
    assert "user:basic" in response.json()["permissions"]

    response = await client.get(
        "/api/auth/permissions",
        params={"organization_id": str(acme.id)},
        headers=auth_headers(member),
    )
    assert response.json()["permissions"] == [
        "user:apis:access",
        "user:basic",
        "user:dashboard:view",
    ]


@pytest.mark.asyncio
async def test_permissions_for_unknown_organization(client: AsyncClient, seed):
    member = await seed.principal("member")

    response = await client.get(
        "/api/auth/permissions",
        params={"organization_id": "00000000-0000-0000-0000-000000000000"},
        headers=auth_headers(member),
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ORGANIZATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_system_admin_override_in_any_organization(client: AsyncClient, seed):
    admin = await seed.principal("system_admin")
    globex = await seed.organization("globex")
    await seed.assign(admin, RoleKind.system_admin)

    response = await client.post(
        "/api/auth/permissions/check",
        json={"permission": "org:settings:manage", "organization_id": str(globex.id)},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["allowed"] is True
    assert response.json()["reason"] == "system_admin_override"
    assert response.json()["matched_role_kind"] == "system_admin"


@pytest.mark.asyncio
async def test_denied_check_is_audited(client: AsyncClient, seed):
    member = await seed.principal("member")
    acme = await seed.organization("acme")
    await seed.assign(member, RoleKind.user, acme)

    response = await client.post(
        "/api/auth/permissions/check",
        json={"permission": "org:settings:manage", "organization_id": str(acme.id)},
        headers=auth_headers(member),
    )

    assert response.status_code == 200
    assert response.json()["allowed"] is False

    [event] = await seed.fetch(AuditEvent, AuditEvent.resource_type == "permission_check")
    assert event.action == "authorization.denied"
    assert event.resource_id == "org:settings:manage"
    assert event.organization_id == acme.id


@pytest.mark.asyncio
async def test_unknown_permission_is_rejected(client: AsyncClient, seed):
    member = await seed.principal("member")

    response = await client.post(
        "/api/auth/permissions/check",
        json={"permission": "org:everything"},
        headers=auth_headers(member),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PERMISSION"
