"""
Route guard middleware

Checks every non-public request against the route permission table before
it reaches a handler:

1. Public paths are forwarded without any identity lookup
2. The session token is resolved to a principal
3. The route's permission is evaluated in the route's scope
4. The decision is audited (denials always, allowed decisions sampled)
5. Allowed requests carry an immutable PrincipalContext on request.state

Lookups are bounded by AUTHZ_TIMEOUT_SECONDS. Store failures and timeouts
fail closed with 503; the request is never forwarded. Audit writes share the
same bound; one that times out is escalated to the fallback log and the
decision stands.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.types import ASGIApp

from libs.result import Error, Result, Return
from src.api.route_permissions import (
    RouteRule,
    ScopeMode,
    is_api_path,
    is_public,
    landing_path,
    match_route,
)
from src.api.utils.jwt import verify_session_token
from src.app.services.audit_recorder import AuditRecorder, build_audit_event, decision_event
from src.app.services.authorization_evaluator import AuthorizationEvaluator
from src.app.services.identity_resolver import IdentityResolver, PrincipalContext, ResolvedIdentity
from src.app.services.unit_of_work import STORE_ERRORS, UnitOfWorkScope
from src.app.use_cases.access import DENIAL_ERRORS
from src.depends import get_request_meta
from src.domain.authorization import Decision, DecisionReason
from src.domain.entities import AuditSeverity

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("src.security")

DENIAL_STATUS = {
    DecisionReason.permission_denied: status.HTTP_403_FORBIDDEN,
    DecisionReason.organization_inactive: status.HTTP_403_FORBIDDEN,
    DecisionReason.organization_not_found: status.HTTP_404_NOT_FOUND,
}


def _error_response(error: Error, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": error.code, "message": error.message}},
    )


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Starlette middleware enforcing the route permission table.

    The unit-of-work scope is read from app.state.uow_scope on each request,
    so tests can point the guard at their own database.
    """

    def __init__(self, app: ASGIApp, config) -> None:
        super().__init__(app)
        self.timeout = config.AUTHZ_TIMEOUT_SECONDS
        self.cookie_name = config.SESSION_COOKIE_NAME
        self.login_path = config.LOGIN_PATH
        self.allowed_sample_rate = config.AUDIT_ALLOWED_SAMPLE_RATE

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        if request.method == "OPTIONS" or is_public(path):
            return await call_next(request)

        uow_scope: UnitOfWorkScope = request.app.state.uow_scope
        recorder = AuditRecorder(uow_scope, timeout=self.timeout)
        request_meta = get_request_meta(request)

        identity_result = await self._bounded(self._resolve(uow_scope, self._session_token(request)))
        if identity_result.is_err():
            error = identity_result.error
            if error.code != "UNAUTHENTICATED":
                return self._unavailable(path, error)
            await recorder.record(
                build_audit_event(
                    action="authentication.required",
                    resource_type="route",
                    resource_id=path,
                    severity=AuditSeverity.low,
                    request_meta=request_meta,
                )
            )
            return self._unauthenticated(request)

        identity: ResolvedIdentity = identity_result.value
        match = match_route(path)
        if match is None or match.rule.permission is None:
            return await self._forward(request, call_next, identity)

        rule = match.rule
        organization_id = None
        if rule.scope == ScopeMode.path:
            try:
                organization_id = UUID(match.organization_id)
            except ValueError:
                return _error_response(
                    Error("INVALID_ORGANIZATION_ID", "Invalid organization ID format"),
                    status.HTTP_400_BAD_REQUEST,
                )

        decision_result = await self._bounded(
            self._decide(uow_scope, identity.principal_id, rule, organization_id)
        )
        if decision_result.is_err():
            return self._unavailable(path, decision_result.error)

        decision: Decision = decision_result.value
        if not decision.allowed or random.random() < self.allowed_sample_rate:
            await recorder.record(
                decision_event(
                    decision,
                    identity.principal_id,
                    resource_type="route",
                    resource_id=path,
                    request_meta=request_meta,
                    extra={"method": request.method},
                )
            )

        if not decision.allowed:
            security_logger.warning(
                f"Access denied: principal={identity.principal_id} path={path} "
                f"permission={decision.permission.value} reason={decision.reason.value}"
            )
            return self._denied(request, identity, decision)

        return await self._forward(
            request, call_next, identity, decision.organization_id, rule.permission
        )

    def _session_token(self, request: Request) -> Optional[str]:
        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return request.cookies.get(self.cookie_name)

    async def _bounded(self, awaitable) -> Result:
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except asyncio.TimeoutError:
            return Return.err(Error("STORE_UNAVAILABLE", "Authorization lookup timed out"))
        except STORE_ERRORS as exc:
            logger.error(f"Authorization store error: {exc!r}")
            return Return.err(Error("STORE_UNAVAILABLE", "Authorization store is unavailable"))

    async def _resolve(self, uow_scope: UnitOfWorkScope, token: Optional[str]) -> Result:
        async with uow_scope() as uow:
            return await IdentityResolver(uow, verify_session_token).resolve(token)

    async def _decide(
        self,
        uow_scope: UnitOfWorkScope,
        principal_id: UUID,
        rule: RouteRule,
        organization_id: Optional[UUID],
    ) -> Result:
        async with uow_scope() as uow:
            evaluator = AuthorizationEvaluator(uow)
            if rule.scope == ScopeMode.any_organization:
                return await evaluator.authorize_any_organization(principal_id, rule.permission)
            return await evaluator.authorize(principal_id, rule.permission, organization_id)

    async def _forward(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
        identity: ResolvedIdentity,
        organization_id: Optional[UUID] = None,
        permission=None,
    ) -> Response:
        request.state.principal = PrincipalContext(
            principal_id=identity.principal_id,
            email=identity.email,
            organization_id=organization_id,
            permission=permission,
        )
        return await call_next(request)

    def _unauthenticated(self, request: Request) -> Response:
        if is_api_path(request.url.path):
            return _error_response(
                Error("UNAUTHENTICATED", "Authentication required"),
                status.HTTP_401_UNAUTHORIZED,
            )

        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return RedirectResponse(
            f"{self.login_path}?{urlencode({'redirect': target})}",
            status_code=status.HTTP_302_FOUND,
        )

    def _denied(self, request: Request, identity: ResolvedIdentity, decision: Decision) -> Response:
        code, message = DENIAL_ERRORS[decision.reason]
        error = Error(code, message)
        path = request.url.path

        if is_api_path(path):
            return _error_response(error, DENIAL_STATUS[decision.reason])

        landing = landing_path(identity.role_assignments)
        if landing.rstrip("/") == path.rstrip("/"):
            return _error_response(error, status.HTTP_403_FORBIDDEN)
        return RedirectResponse(landing, status_code=status.HTTP_302_FOUND)

    def _unavailable(self, path: str, error: Error) -> Response:
        logger.error(f"Failing closed for {path}: {error.code}")
        return _error_response(
            Error("STORE_UNAVAILABLE", "Authorization is temporarily unavailable"),
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )
