import asyncio

import pytest
from sqlalchemy.exc import IntegrityError

from src.adapter.repositories.role_assignment_repository import RoleAssignmentRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.roles import GrantRoleUseCase
from src.domain.entities import AuditEvent, RoleAssignment, RoleKind

scope_lookup = RoleAssignmentRepository.get_by_principal_and_organization


async def _grant_system_admin(session_factory, actor, principal):
    async with session_factory() as session:
        use_case = GrantRoleUseCase(SqlAlchemyUnitOfWork(session))
        return await use_case.execute(actor.id, principal.id, "system_admin")


@pytest.mark.asyncio
async def test_second_system_wide_row_is_rejected(seed):
    principal = await seed.principal("system_admin")
    await seed.assign(principal, RoleKind.system_admin)

    with pytest.raises(IntegrityError):
        await seed.assign(principal, RoleKind.system_admin)


@pytest.mark.asyncio
async def test_concurrent_system_wide_grants_store_one_assignment(
    session_factory, seed, monkeypatch
):
    """
    Given two concurrent system_admin grants for the same principal
    When both find no system-wide assignment before writing
    Then one grant is stored and the other reports ASSIGNMENT_CHANGED
    """
    root = await seed.principal("system_admin")
    await seed.assign(root, RoleKind.system_admin)
    target = await seed.principal("member")

    both_looked_up = asyncio.Barrier(2)
    first_lookups = []

    async def lookup_in_step(self, principal_id, organization_id):
        found = await scope_lookup(self, principal_id, organization_id)
        if principal_id == target.id and len(first_lookups) < 2:
            first_lookups.append(found)
            await both_looked_up.wait()
        return found

    monkeypatch.setattr(
        RoleAssignmentRepository, "get_by_principal_and_organization", lookup_in_step
    )

    results = await asyncio.wait_for(
        asyncio.gather(
            _grant_system_admin(session_factory, root, target),
            _grant_system_admin(session_factory, root, target),
        ),
        timeout=20,
    )

    assert first_lookups == [None, None]
    assert sorted(result.is_ok() for result in results) == [False, True]
    failed = next(result for result in results if not result.is_ok())
    assert failed.error.code == "ASSIGNMENT_CHANGED"

    rows = await seed.fetch(RoleAssignment, RoleAssignment.principal_id == target.id)
    assert len(rows) == 1
    assert rows[0].organization_id is None

    granted = await seed.fetch(AuditEvent, AuditEvent.action == "role.granted")
    assert len(granted) == 1
