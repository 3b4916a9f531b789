"""
tests/conftest.py
Shared fixtures: in-memory SQLite database, fake Redis, an HTTP client bound
to the app, and one user per role.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config.database import Base, get_db
from config.redis_client import get_redis
from main import app
from shared.models.models import User, UserRole
from shared.utils.security import create_access_token


def auth_headers(user: User) -> dict:
    """Session cookie for `user`, the way a browser would send it."""
    token, _ = create_access_token(user.email)
    return {"Cookie": f"token={token}"}


# ── Infrastructure ─────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def redis():
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest_asyncio.fixture
async def client(session_factory, redis):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Users ──────────────────────────────────────────────────────────────────────

async def _make_user(db: AsyncSession, email: str, name: str, role: UserRole) -> User:
    user = User(email=email, name=name, photo=f"https://img.example.com/{name}.png", role=role)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(db):
    return await _make_user(db, "newcomer@wanderlust.com", "newcomer", UserRole.USER)


@pytest_asyncio.fixture
async def tourist_user(db):
    return await _make_user(db, "tourist@wanderlust.com", "tourist", UserRole.TOURIST)


@pytest_asyncio.fixture
async def guide_user(db):
    return await _make_user(db, "guide@wanderlust.com", "guide", UserRole.GUIDE)


@pytest_asyncio.fixture
async def admin_user(db):
    return await _make_user(db, "admin@wanderlust.com", "admin", UserRole.ADMIN)
