import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mall_app.app import create_app
from mall_app.core.breaker import breaker
from mall_app.core.get_db import Base, get_db_async
from mall_app.models.enums import UserRole
from tests.factories import make_profile


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def service_db(session_factory):
    """Session handed to services, kept apart from the one factories write with."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def closed_breaker():
    breaker.reset()
    yield
    breaker.reset()


@pytest.fixture
async def client(session_factory):
    app = create_app(use_lifespan=False)

    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_async] = override_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
async def people(db):
    """One of each role plus a second landlord and tenant for scoping checks."""
    return {
        "admin": await make_profile(db, UserRole.SUPERADMIN, "super admin"),
        "landlord": await make_profile(db, UserRole.LANDLORD, "lena landlord"),
        "other_landlord": await make_profile(db, UserRole.LANDLORD, "omar landlord"),
        "tenant": await make_profile(db, UserRole.TENANT, "tom tenant"),
        "other_tenant": await make_profile(db, UserRole.TENANT, "tina tenant"),
    }
