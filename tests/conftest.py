"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any ``haruup`` import so the global
settings object is built for tests: in-memory rate limiting, no scheduler,
no table creation against the default database file.
"""

import os

os.environ["TESTING"] = "true"

os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_TIMEZONE", "Asia/Seoul")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("RANKING_BATCH_ENABLED", "false")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_CREATE_TABLES", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import haruup.adapters.llm.factory as llm_factory_module
import haruup.core.rate_limit as rate_limit_module
from haruup.models import Base, Character, Level


_SHARED_CLIENT_ATTRS = (
    (rate_limit_module, ("_limiter", "_limiter_backend")),
    (llm_factory_module, ("_shared_client", "_shared_for")),
)


def _forget_shared_clients() -> None:
    for module, names in _SHARED_CLIENT_ATTRS:
        for name in names:
            setattr(module, name, None)


@pytest.fixture(autouse=True)
def reset_shared_clients():
    """Give every test a fresh process-wide limiter and LLM client."""
    _forget_shared_clients()
    yield
    _forget_shared_clients()


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Gateway headers for member 1."""
    return {"X-API-Key": "test-api-key-123", "X-Member-Id": "1"}


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_engine) -> AsyncSession:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def character(session: AsyncSession) -> Character:
    character = Character(name="하루", description="기본 캐릭터")
    session.add(character)
    await session.commit()
    return character


@pytest_asyncio.fixture
async def level_1(session: AsyncSession) -> Level:
    level = Level(level_number=1, required_exp=1000, max_exp=1000)
    session.add(level)
    await session.commit()
    return level
