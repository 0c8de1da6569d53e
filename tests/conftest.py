# tests/conftest.py
import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import leadflow.models  # noqa: F401
from leadflow.db.base import Base
from leadflow.db.session import build_session_factory, get_session, install_connection_hooks
from leadflow.main import app
from leadflow.models.enums import LeadSource
from leadflow.schemas.landing import LandingCreate
from leadflow.services import landings, lead_repository


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    install_connection_hooks(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def landing(db_session):
    return await landings.create_landing(
        db_session,
        LandingCreate(name="Reformas Madrid", slug="reformas-madrid", url="https://reformas.example.com"),
    )


@pytest_asyncio.fixture
async def make_lead(db_session):
    async def _make(**fields):
        fields.setdefault("name", "Ana Garcia")
        fields.setdefault("phone", "600123456")
        fields.setdefault("source", LeadSource.DIRECT)
        lead = await lead_repository.create_lead(db_session, **fields)
        await db_session.commit()
        return lead

    return _make
