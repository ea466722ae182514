from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.invitation_repository import InvitationRepository
from src.adapter.repositories.organization_repository import OrganizationRepository
from src.adapter.repositories.principal_repository import PrincipalRepository
from src.adapter.repositories.role_assignment_repository import RoleAssignmentRepository
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session
        # Repositories are usable for reads before entering a transaction scope
        self.principals = PrincipalRepository(self.session)
        self.organizations = OrganizationRepository(self.session)
        self.role_assignments = RoleAssignmentRepository(self.session)
        self.invitations = InvitationRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
