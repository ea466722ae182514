from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient

from src.domain.base import utcnow
from src.domain.entities import (
    AuditEvent,
    Invitation,
    InvitationStatus,
    RoleAssignment,
    RoleKind,
)
from tests.fixtures.seed import auth_headers
from tests.utils.json_compare import exclude_keys


@pytest_asyncio.fixture
async def acme_setup(seed):
    owner = await seed.principal("org_admin")
    acme = await seed.organization("acme")
    await seed.assign(owner, RoleKind.org_admin, acme)
    return owner, acme


@pytest.mark.asyncio
async def test_invitation_round_trip(client: AsyncClient, seed, acme_setup, test_data):
    """
    Given I am an organization admin
    When I invite a new user and they accept while signed in with that email
    Then they hold the invited role in my organization
    And accepting the same invitation again is rejected
    """
    owner, acme = acme_setup
    invitee = await seed.principal("invitee")

    response = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": "NewUser@Example.com", "role_kind": "user"},
        headers=auth_headers(owner),
    )
    assert response.status_code == 201
    invite = response.json()
    assert invite["status"] == "pending"
    assert invite["reissued"] is False
    assert invite["invite_url"] == f"/invite/{invite['token']}"

    response = await client.get(f"/api/invitations/{invite['token']}", headers=auth_headers(invitee))
    assert response.status_code == 200
    view = response.json()
    assert set(view) == set(test_data.get("invitation_view_fields"))
    assert exclude_keys(view, {"invitation_id", "expires_at"}) == {
        "organization_id": str(acme.id),
        "organization_name": "Acme Corp",
        "email": "newuser@example.com",
        "role_kind": "user",
        "status": "pending",
    }

    response = await client.post(
        f"/api/invitations/{invite['token']}/accept", headers=auth_headers(invitee)
    )
    assert response.status_code == 200
    accepted = response.json()
    assert accepted["organization_id"] == str(acme.id)
    assert accepted["role_kind"] == "user"
    assert accepted["reactivated"] is False

    response = await client.get(
        "/api/auth/permissions",
        params={"organization_id": str(acme.id)},
        headers=auth_headers(invitee),
    )
    assert response.status_code == 200
    assert "user:basic" in response.json()["permissions"]
    assert "org:users:manage" not in response.json()["permissions"]

    response = await client.post(
        f"/api/invitations/{invite['token']}/accept", headers=auth_headers(invitee)
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVITATION_ALREADY_PROCESSED"

    [invitation] = await seed.fetch(Invitation)
    assert invitation.status == InvitationStatus.accepted
    assert invitation.accepted_at is not None

    actions = [event.action for event in await seed.fetch(AuditEvent, AuditEvent.resource_type == "invitation")]
    assert "invitation.created" in actions
    assert "invitation.accepted" in actions


@pytest.mark.asyncio
async def test_reinvite_reissues_the_open_invitation(client: AsyncClient, seed, acme_setup):
    """
    Given an open invitation for an email
    When the same email is invited again
    Then the existing invitation is reissued with a new token
    And the old token no longer resolves
    """
    owner, acme = acme_setup
    invitee = await seed.principal("invitee")

    first = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": "newuser@example.com"},
        headers=auth_headers(owner),
    )
    second = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": "newuser@example.com", "role_kind": "org_admin"},
        headers=auth_headers(owner),
    )

    assert second.status_code == 201
    assert second.json()["invitation_id"] == first.json()["invitation_id"]
    assert second.json()["reissued"] is True
    assert second.json()["token"] != first.json()["token"]

    invitations = await seed.fetch(Invitation, Invitation.organization_id == acme.id)
    assert len(invitations) == 1
    assert invitations[0].role_kind == RoleKind.org_admin

    response = await client.get(
        f"/api/invitations/{first.json()['token']}", headers=auth_headers(invitee)
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_expired_invitation_is_reported_without_writes(client: AsyncClient, seed, acme_setup):
    """
    Given a pending invitation past its expiry
    When it is read or accepted
    Then it reports expired but the stored row is untouched
    And re-inviting the email makes it pending again
    """
    owner, acme = acme_setup
    invitee = await seed.principal("invitee")
    stale = await seed.invitation(
        organization_id=acme.id,
        email=invitee.email,
        role_kind=RoleKind.user,
        token="stale-token",
        invited_by=owner.id,
        expires_at=utcnow() - timedelta(hours=1),
    )

    response = await client.get("/api/invitations/stale-token", headers=auth_headers(invitee))
    assert response.json()["status"] == "expired"

    response = await client.post("/api/invitations/stale-token/accept", headers=auth_headers(invitee))
    assert response.status_code == 410
    assert response.json()["error"]["code"] == "INVITATION_EXPIRED"

    [stored] = await seed.fetch(Invitation, Invitation.id == stale.id)
    assert stored.status == InvitationStatus.pending
    assert await seed.fetch(RoleAssignment, RoleAssignment.principal_id == invitee.id) == []

    response = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": invitee.email},
        headers=auth_headers(owner),
    )
    assert response.json()["invitation_id"] == str(stale.id)

    [stored] = await seed.fetch(Invitation, Invitation.id == stale.id)
    assert stored.expires_at > utcnow()


@pytest.mark.asyncio
async def test_accepting_with_another_email_is_rejected(client: AsyncClient, seed, acme_setup):
    owner, acme = acme_setup
    outsider = await seed.principal("outsider")
    response = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": "newuser@example.com"},
        headers=auth_headers(owner),
    )

    response = await client.post(
        f"/api/invitations/{response.json()['token']}/accept", headers=auth_headers(outsider)
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "EMAIL_MISMATCH"


@pytest.mark.asyncio
async def test_revoked_invitation_cannot_be_accepted(client: AsyncClient, seed, acme_setup):
    owner, acme = acme_setup
    invitee = await seed.principal("invitee")
    invite = (
        await client.post(
            f"/api/org/{acme.id}/invitations",
            json={"email": invitee.email},
            headers=auth_headers(owner),
        )
    ).json()

    response = await client.delete(
        f"/api/org/{acme.id}/invitations/{invite['invitation_id']}", headers=auth_headers(owner)
    )
    assert response.status_code == 200
    assert response.json() == {"status": "revoked"}

    response = await client.post(
        f"/api/invitations/{invite['token']}/accept", headers=auth_headers(invitee)
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVITATION_ALREADY_PROCESSED"

    response = await client.delete(
        f"/api/org/{acme.id}/invitations/{invite['invitation_id']}", headers=auth_headers(owner)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_inviting_an_existing_member_conflicts(client: AsyncClient, seed, acme_setup):
    owner, acme = acme_setup
    member = await seed.principal("member")
    await seed.assign(member, RoleKind.user, acme)

    response = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": member.email},
        headers=auth_headers(owner),
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_MEMBER"


@pytest.mark.asyncio
async def test_regular_member_cannot_invite(client: AsyncClient, seed, acme_setup):
    _, acme = acme_setup
    member = await seed.principal("member")
    await seed.assign(member, RoleKind.user, acme)

    response = await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": "newuser@example.com"},
        headers=auth_headers(member),
    )

    assert response.status_code == 403
    assert await seed.fetch(Invitation) == []


@pytest.mark.asyncio
async def test_list_invitations_shows_effective_status(client: AsyncClient, seed, acme_setup):
    owner, acme = acme_setup
    await seed.invitation(
        organization_id=acme.id,
        email="late@example.com",
        role_kind=RoleKind.user,
        token="late-token",
        expires_at=utcnow() - timedelta(days=1),
    )
    await client.post(
        f"/api/org/{acme.id}/invitations",
        json={"email": "fresh@example.com"},
        headers=auth_headers(owner),
    )

    response = await client.get(f"/api/org/{acme.id}/invitations", headers=auth_headers(owner))

    assert response.status_code == 200
    statuses = {item["email"]: item["status"] for item in response.json()["invitations"]}
    assert statuses == {"late@example.com": "expired", "fresh@example.com": "pending"}
