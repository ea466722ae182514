from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.principal_repository import IPrincipalRepository
from src.domain.entities import Principal


class PrincipalRepository(IPrincipalRepository):
    """Principal repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        """Get principal by ID"""
        stmt = select(Principal).where(Principal.id == principal_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[Principal]:
        """Get principal by email address (case-insensitive)"""
        stmt = select(Principal).where(func.lower(Principal.email) == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
