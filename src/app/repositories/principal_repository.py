from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import Principal


class IPrincipalRepository(ABC):
    """Principal repository interface - application layer (read-only)"""

    @abstractmethod
    async def get_by_id(self, principal_id: UUID) -> Optional[Principal]:
        """Get principal by ID"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Principal]:
        """Get principal by email address (case-insensitive)"""
        pass
