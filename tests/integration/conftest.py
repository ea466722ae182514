import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_unit_of_work, make_unit_of_work_scope
from tests.fixtures.json_loader import TestDataLoader
from tests.fixtures.seed import Seeder


@pytest.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
def make_client(session_factory):
    """Build a client for an app with the given config and unit-of-work scope"""

    def build(config=ApplicationConfig, uow_scope=None):
        from src.api.app import create_app

        app = create_app(config, uow_scope=uow_scope or make_unit_of_work_scope(session_factory))

        async def override_get_unit_of_work():
            async with session_factory() as session:
                yield SqlAlchemyUnitOfWork(session)

        app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return build


@pytest_asyncio.fixture
async def client(make_client):
    async with make_client() as ac:
        yield ac
