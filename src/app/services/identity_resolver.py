"""
Identity Resolver

Turns an opaque session token into the principal it belongs to, together
with the principal's currently effective role assignments.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import STORE_ERRORS, UnitOfWork
from src.domain.authorization import effective_assignments
from src.domain.base import utcnow
from src.domain.entities import Permission, RoleAssignment

# Decodes a session token to its claims, or None when it is not valid
TokenVerifier = Callable[[str], Optional[dict]]


class PrincipalContext(BaseModel):
    """Immutable per-request identity handed from the route guard to handlers"""

    model_config = ConfigDict(frozen=True)

    principal_id: UUID
    email: str
    organization_id: Optional[UUID] = None
    permission: Optional[Permission] = None


@dataclass(frozen=True)
class ResolvedIdentity:
    principal_id: UUID
    email: str
    role_assignments: Tuple[RoleAssignment, ...]


class IdentityResolver:
    """
    Resolve session tokens to principals.

    Error codes:
    - UNAUTHENTICATED: token missing, invalid, expired, or the principal is
      unknown or inactive. Callers must not retry; the user logs in again.
    - TRANSIENT_LOOKUP_FAILURE: the store could not be reached. Retryable.

    Never mutates role-assignment state.
    """

    def __init__(self, uow: UnitOfWork, verify_token: TokenVerifier):
        self.uow = uow
        self.verify_token = verify_token

    async def resolve(self, session_token: Optional[str]) -> Result[ResolvedIdentity]:
        """
        Resolve a session token.

        Args:
            session_token: Token from the Authorization header or session cookie

        Returns:
            Result with ResolvedIdentity, or Error
        """
        if not session_token:
            return Return.err(Error("UNAUTHENTICATED", "Session token missing"))

        payload = self.verify_token(session_token)
        if payload is None:
            return Return.err(Error("UNAUTHENTICATED", "Invalid or expired session token"))

        try:
            principal_id = UUID(payload.get("sub"))
        except (TypeError, ValueError):
            return Return.err(Error("UNAUTHENTICATED", "Session token has no subject"))

        try:
            principal = await self.uow.principals.get_by_id(principal_id)
            if principal is None or not principal.active:
                return Return.err(Error("UNAUTHENTICATED", "Principal is unknown or inactive"))
            assignments = await self.uow.role_assignments.get_by_principal_id(principal.id)
        except STORE_ERRORS:
            return Return.err(
                Error("TRANSIENT_LOOKUP_FAILURE", "Identity store is unavailable")
            )

        return Return.ok(
            ResolvedIdentity(
                principal_id=principal.id,
                email=principal.email,
                role_assignments=tuple(effective_assignments(assignments, utcnow())),
            )
        )
