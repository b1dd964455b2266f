import os
from typing import AsyncGenerator

import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Optional local overrides (e.g. a Postgres DATABASE_URL for the full suite)
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Settings require a DATABASE_URL; default to in-memory SQLite
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from libs.common.config import get_settings  # noqa: E402
from libs.db.base import Base  # noqa: E402

# Register every commerce table with Base.metadata
import services.commerce_service.models  # noqa: E402,F401

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """
    Create a fresh schema for each test.

    SQLite runs in memory on a single shared connection; any other URL gets
    its tables created and dropped around the test.
    """
    if settings.is_sqlite:
        engine = create_async_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(settings.DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session configured like the application's AsyncSessionLocal.
    Operations commit for real; the schema is dropped after the test.
    """
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def commerce_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the commerce app with the DB dependency
    pointed at the test session.
    """
    from libs.db.session import get_async_db
    from services.commerce_service.app.main import app

    app.dependency_overrides[get_async_db] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
