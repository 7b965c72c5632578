import os

# Must be set before codetrail.core.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["CACHE_ENABLED"] = "false"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from codetrail.core.security import get_password_hash
from codetrail.db.base import Base
from codetrail.models.user import User


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
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db):
    user = User(
        email="alice@example.com",
        username="alice",
        hashed_password=get_password_hash("correct-horse"),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user
