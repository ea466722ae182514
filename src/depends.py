from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request, status
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.services.audit_recorder import RequestMeta
from src.app.services.identity_resolver import PrincipalContext
from src.app.services.unit_of_work import UnitOfWork

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def make_unit_of_work_scope(session_factory):
    """Build a UnitOfWorkScope over a session factory"""

    @asynccontextmanager
    async def scope() -> AsyncIterator[UnitOfWork]:
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    return scope


unit_of_work_scope = make_unit_of_work_scope(AsyncSessionLocal)


async def get_principal_context(request: Request) -> PrincipalContext:
    """
    Dependency returning the principal resolved by the route guard.

    The guard resolves identity once per request and stores an immutable
    PrincipalContext on request.state; handlers never resolve it again.

    Raises:
        ClientError: 401 if the request reached a handler without a principal
    """
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise ClientError(
            Error("UNAUTHENTICATED", "Authentication required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return principal


def get_request_meta(request: Request) -> RequestMeta:
    """Client IP and user agent for audit events"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (
            request.client.host if request.client else None
        )
    return RequestMeta(ip_address=ip_address, user_agent=request.headers.get("user-agent"))
