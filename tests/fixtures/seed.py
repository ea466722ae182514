from typing import Optional

from sqlmodel import select

from src.api.utils.jwt import create_session_token
from src.domain.entities import (
    Invitation,
    Organization,
    Principal,
    RoleAssignment,
    RoleKind,
    SubscriptionPlan,
)
from tests.fixtures.json_loader import TestDataLoader


def auth_headers(principal: Principal) -> dict:
    token = create_session_token(principal.id, principal.email)
    return {"Authorization": f"Bearer {token}"}


class Seeder:
    """Writes fixture rows through short-lived sessions and reads them back fresh"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def add(self, entity):
        async with self.session_factory() as session:
            session.add(entity)
            await session.commit()
        return entity

    async def principal(self, key: str, active: bool = True) -> Principal:
        data = TestDataLoader.get_copy("principals")[key]
        return await self.add(Principal(email=data["email"], active=active))

    async def organization(self, key: str, active: bool = True) -> Organization:
        data = TestDataLoader.get_copy("organizations")[key]
        return await self.add(
            Organization(
                name=data["name"],
                slug=data["slug"],
                subscription_plan=SubscriptionPlan(data["subscription_plan"]),
                active=active,
            )
        )

    async def assign(
        self,
        principal: Principal,
        role_kind: RoleKind,
        organization: Optional[Organization] = None,
        **fields,
    ) -> RoleAssignment:
        return await self.add(
            RoleAssignment(
                principal_id=principal.id,
                organization_id=organization.id if organization else None,
                role_kind=role_kind,
                **fields,
            )
        )

    async def invitation(self, **fields) -> Invitation:
        return await self.add(Invitation(**fields))

    async def fetch(self, model, *criteria) -> list:
        async with self.session_factory() as session:
            stmt = select(model)
            if criteria:
                stmt = stmt.where(*criteria)
            result = await session.exec(stmt)
            return list(result.all())
