from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.organization_repository import IOrganizationRepository
from src.domain.entities import Organization


class OrganizationRepository(IOrganizationRepository):
    """Organization repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, organization_id: UUID) -> Optional[Organization]:
        """Get organization by ID"""
        stmt = select(Organization).where(Organization.id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ids(self, organization_ids: List[UUID]) -> List[Organization]:
        """Get several organizations at once"""
        if not organization_ids:
            return []
        stmt = select(Organization).where(Organization.id.in_(organization_ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_slug(self, slug: str) -> Optional[Organization]:
        """Get organization by slug"""
        stmt = select(Organization).where(Organization.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization"""
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def update(self, organization: Organization) -> Organization:
        """Update existing organization"""
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization
