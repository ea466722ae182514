from abc import ABC, abstractmethod
from typing import AsyncContextManager, Callable

from sqlalchemy.exc import SQLAlchemyError

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.invitation_repository import IInvitationRepository
from src.app.repositories.organization_repository import IOrganizationRepository
from src.app.repositories.principal_repository import IPrincipalRepository
from src.app.repositories.role_assignment_repository import IRoleAssignmentRepository

# Failures of the backing store that callers treat as "store unavailable"
STORE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    principals: IPrincipalRepository
    organizations: IOrganizationRepository
    role_assignments: IRoleAssignmentRepository
    invitations: IInvitationRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


# Opens a fresh UnitOfWork bound to its own session, closed on exit
UnitOfWorkScope = Callable[[], AsyncContextManager[UnitOfWork]]
