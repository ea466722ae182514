from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt
from sqlalchemy.exc import SQLAlchemyError

from config import ApplicationConfig
from src.api.utils.jwt import create_session_token, verify_session_token
from src.app.services.identity_resolver import IdentityResolver
from src.domain.base import utcnow
from src.domain.entities import RoleKind
from tests.fixtures.factories import make_assignment, make_organization, make_principal


@pytest.mark.asyncio
async def test_resolves_principal_with_effective_assignments(mock_uow):
    principal = make_principal("alice@example.com")
    org = make_organization()
    active = make_assignment(principal, RoleKind.user, org)
    revoked = make_assignment(principal, RoleKind.org_admin, make_organization("Other"), active=False)
    expired = make_assignment(
        principal, RoleKind.system_admin, expires_at=utcnow() - timedelta(minutes=1)
    )
    mock_uow.principals.get_by_id.return_value = principal
    mock_uow.role_assignments.get_by_principal_id.return_value = [active, revoked, expired]

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(
        create_session_token(principal.id, principal.email)
    )

    assert result.is_ok()
    identity = result.value
    assert identity.principal_id == principal.id
    assert identity.email == "alice@example.com"
    assert identity.role_assignments == (active,)
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
async def test_missing_or_malformed_token_is_unauthenticated(mock_uow, token):
    result = await IdentityResolver(mock_uow, verify_session_token).resolve(token)

    assert result.is_err()
    assert result.error.code == "UNAUTHENTICATED"
    mock_uow.principals.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_expired_token_is_unauthenticated(mock_uow):
    token = create_session_token(uuid4(), "a@example.com", expires_delta=timedelta(seconds=-5))

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(token)

    assert result.error.code == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_token_signed_with_another_key_is_unauthenticated(mock_uow):
    token = jwt.encode({"sub": str(uuid4())}, "some-other-secret", algorithm="HS256")

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(token)

    assert result.error.code == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_token_without_valid_subject_is_unauthenticated(mock_uow):
    token = jwt.encode(
        {"sub": "not-a-uuid"}, ApplicationConfig.JWT_SECRET, algorithm=ApplicationConfig.JWT_ALGORITHM
    )

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(token)

    assert result.error.code == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_inactive_principal_is_unauthenticated(mock_uow):
    principal = make_principal(active=False)
    mock_uow.principals.get_by_id.return_value = principal

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(
        create_session_token(principal.id, principal.email)
    )

    assert result.error.code == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_unknown_principal_is_unauthenticated(mock_uow):
    mock_uow.principals.get_by_id.return_value = None

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(
        create_session_token(uuid4(), "x@y.com")
    )

    assert result.error.code == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_store_failure_is_transient(mock_uow):
    mock_uow.principals.get_by_id.side_effect = SQLAlchemyError("connection refused")

    result = await IdentityResolver(mock_uow, verify_session_token).resolve(
        create_session_token(uuid4(), "x@y.com")
    )

    assert result.is_err()
    assert result.error.code == "TRANSIENT_LOOKUP_FAILURE"


@pytest.mark.asyncio
async def test_tokens_are_checked_by_the_injected_verifier(mock_uow):
    principal = make_principal("alice@example.com")
    mock_uow.principals.get_by_id.return_value = principal
    seen = []

    def verify(token):
        seen.append(token)
        return {"sub": str(principal.id)} if token == "opaque-session" else None

    resolver = IdentityResolver(mock_uow, verify)
    accepted = await resolver.resolve("opaque-session")
    rejected = await resolver.resolve(create_session_token(principal.id, principal.email))

    assert accepted.value.principal_id == principal.id
    assert rejected.error.code == "UNAUTHENTICATED"
    assert seen[0] == "opaque-session"
    assert len(seen) == 2
