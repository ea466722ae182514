from datetime import timedelta

import pytest

from src.app.repositories.role_assignment_repository import AssignmentExistsError
from src.app.use_cases.invitations import AcceptInvitationUseCase
from src.domain.entities import InvitationStatus, RoleKind
from tests.fixtures.factories import (
    make_assignment,
    make_invitation,
    make_organization,
    make_principal,
)
from tests.utils.audit_assertions import audited_actions, audited_events


@pytest.fixture
def organization(mock_uow):
    org = make_organization("Acme Corp")
    mock_uow.organizations.get_by_id.return_value = org
    return org


@pytest.fixture
def invitee(mock_uow):
    principal = make_principal("newuser@example.com")
    mock_uow.principals.get_by_id.return_value = principal
    return principal


@pytest.fixture
def invitation(mock_uow, organization):
    pending = make_invitation(organization, email="newuser@example.com", role_kind=RoleKind.org_admin)
    mock_uow.invitations.get_by_token.return_value = pending
    return pending


@pytest.mark.asyncio
async def test_accept_creates_assignment(mock_uow, organization, invitee, invitation):
    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.is_ok()
    response = result.value
    assert response.organization_id == str(organization.id)
    assert response.organization_name == "Acme Corp"
    assert response.role_kind == "org_admin"
    assert response.reactivated is False

    assignment = mock_uow.role_assignments.create.call_args.args[0]
    assert assignment.principal_id == invitee.id
    assert assignment.organization_id == organization.id
    assert assignment.role_kind == RoleKind.org_admin

    mock_uow.invitations.transition_status.assert_awaited_once_with(
        invitation.id, [InvitationStatus.pending], InvitationStatus.accepted
    )
    assert audited_actions(mock_uow) == ["invitation.accepted"]
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_accept_reactivates_dormant_assignment(mock_uow, organization, invitee, invitation):
    dormant = make_assignment(invitee, RoleKind.user, organization, active=False)
    mock_uow.role_assignments.get_by_principal_and_organization.return_value = dormant

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.is_ok()
    assert result.value.reactivated is True
    assert result.value.assignment_id == str(dormant.id)
    mock_uow.role_assignments.create.assert_not_called()
    mock_uow.role_assignments.reactivate.assert_awaited_once()
    assert mock_uow.role_assignments.reactivate.call_args.kwargs["role_kind"] == RoleKind.org_admin
    assert audited_events(mock_uow)[0].old_values["active"] is False


@pytest.mark.asyncio
async def test_unknown_token(mock_uow, invitee):
    mock_uow.invitations.get_by_token.return_value = None

    result = await AcceptInvitationUseCase(mock_uow).execute("nope", invitee.id)

    assert result.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [InvitationStatus.accepted, InvitationStatus.revoked])
async def test_terminal_invitation_is_already_processed(mock_uow, invitee, invitation, status):
    invitation.status = status

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "INVITATION_ALREADY_PROCESSED"
    mock_uow.role_assignments.create.assert_not_called()


@pytest.mark.asyncio
async def test_lapsed_invitation_is_expired_without_writes(mock_uow, invitee, invitation):
    invitation.expires_at = invitation.expires_at - timedelta(days=8)

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "INVITATION_EXPIRED"
    assert invitation.status == InvitationStatus.pending
    mock_uow.invitations.transition_status.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_email_mismatch(mock_uow, invitation):
    mock_uow.principals.get_by_id.return_value = make_principal("someone@else.com")

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitation.id)

    assert result.error.code == "EMAIL_MISMATCH"


@pytest.mark.asyncio
async def test_email_match_ignores_case(mock_uow, invitation):
    principal = make_principal("NewUser@Example.com")
    mock_uow.principals.get_by_id.return_value = principal

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, principal.id)

    assert result.is_ok()


@pytest.mark.asyncio
async def test_inactive_organization(mock_uow, organization, invitee, invitation):
    organization.active = False

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "ORGANIZATION_INACTIVE"
    mock_uow.invitations.transition_status.assert_not_called()


@pytest.mark.asyncio
async def test_already_member(mock_uow, organization, invitee, invitation):
    mock_uow.role_assignments.get_by_principal_and_organization.return_value = make_assignment(
        invitee, RoleKind.user, organization
    )

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "ALREADY_MEMBER"


@pytest.mark.asyncio
async def test_losing_the_accept_race(mock_uow, invitee, invitation):
    mock_uow.invitations.transition_status.return_value = False

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "INVITATION_ALREADY_PROCESSED"
    mock_uow.role_assignments.create.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_joined_concurrently_while_accepting(mock_uow, invitee, invitation):
    mock_uow.role_assignments.create.side_effect = AssignmentExistsError(str(invitee.id))

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "ALREADY_MEMBER"
    mock_uow.rollback.assert_awaited_once()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_user_limit_reached(mock_uow, invitee, invitation):
    mock_uow.role_assignments.count_active_by_organization.return_value = 5

    result = await AcceptInvitationUseCase(mock_uow).execute(invitation.token, invitee.id)

    assert result.error.code == "USER_LIMIT_REACHED"
    mock_uow.invitations.transition_status.assert_not_called()
