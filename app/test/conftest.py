import os

os.environ["TESTING"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy.pool import StaticPool

from app.auth.auth import create_user_token
from app.database.database import Base, get_db
from app.main import app
from app.models.models import Rider, User
from app.schemas.status_schema import RiderStatus, UserRole
from app.test.factories import RiderFactory, UserFactory, persist


@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    In-memory SQLite engine with a fresh schema per test.
    StaticPool keeps the single connection alive for the whole test.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session_factory() as test_session:
        yield test_session


@pytest_asyncio.fixture(scope="function")
async def client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client that uses the test database session.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], dict]:
    """Bearer headers carrying a real token for the given user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers


@pytest_asyncio.fixture
async def admin_user(session: AsyncSession) -> User:
    return await persist(session, UserFactory(role=UserRole.ADMIN, name="Admin User"))


@pytest_asyncio.fixture
async def logistics_user(session: AsyncSession) -> User:
    return await persist(session, UserFactory(role=UserRole.LOGISTICS_MANAGER))


@pytest_asyncio.fixture
async def operations_user(session: AsyncSession) -> User:
    return await persist(session, UserFactory(role=UserRole.OPERATIONS_MANAGER))


@pytest_asyncio.fixture
async def rider(session: AsyncSession) -> Rider:
    """Active rider profile; `rider.user` is the rider-role account."""
    return await persist(
        session, RiderFactory(status=RiderStatus.ACTIVE, longitude=-84.388, latitude=33.749)
    )


@pytest_asyncio.fixture
async def other_rider(session: AsyncSession) -> Rider:
    return await persist(
        session, RiderFactory(status=RiderStatus.ACTIVE, longitude=-84.390, latitude=33.751)
    )
