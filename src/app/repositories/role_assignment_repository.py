from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import RoleAssignment, RoleKind


class AssignmentExistsError(Exception):
    """Raised by create when the principal already has a row in that scope"""


class IRoleAssignmentRepository(ABC):
    """RoleAssignment repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, assignment_id: UUID) -> Optional[RoleAssignment]:
        """Get role assignment by ID"""
        pass

    @abstractmethod
    async def get_by_principal_id(self, principal_id: UUID) -> List[RoleAssignment]:
        """Get every role assignment of a principal, active or not"""
        pass

    @abstractmethod
    async def get_by_principal_and_organization(
        self, principal_id: UUID, organization_id: Optional[UUID]
    ) -> Optional[RoleAssignment]:
        """Get the assignment for a principal in an organization (None = system-wide)"""
        pass

    @abstractmethod
    async def count_active_by_organization(self, organization_id: UUID, now: datetime) -> int:
        """Count effective assignments in an organization"""
        pass

    @abstractmethod
    async def count_active_system_admins(self, now: datetime) -> int:
        """Count effective system-wide system_admin assignments"""
        pass

    @abstractmethod
    async def create(self, assignment: RoleAssignment) -> RoleAssignment:
        """
        Create a new role assignment.

        Raises:
            AssignmentExistsError: a row for the same (principal, organization)
                was stored first
        """
        pass

    @abstractmethod
    async def update(self, assignment: RoleAssignment) -> RoleAssignment:
        """Update an existing role assignment"""
        pass

    @abstractmethod
    async def deactivate(self, assignment_id: UUID) -> bool:
        """
        Flip active True -> False atomically.

        Returns:
            False when the row was not active (lost a concurrent race)
        """
        pass

    @abstractmethod
    async def reactivate(
        self,
        assignment_id: UUID,
        role_kind: RoleKind,
        permission_overrides: List[str],
        expires_at: Optional[datetime],
        assigned_by: Optional[UUID],
    ) -> bool:
        """
        Flip active False -> True atomically, replacing role details.

        Returns:
            False when the row was already active (lost a concurrent race)
        """
        pass
