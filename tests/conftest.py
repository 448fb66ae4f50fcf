"""
Общие фикстуры тестов.

База данных: in-memory SQLite (aiosqlite) с одной общей связью (StaticPool),
таблицы создаются из метаданных моделей. API тестируется через httpx
AsyncClient поверх ASGI-приложения с подменой зависимости get_db.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_db
from app.core.security import create_access_token
from app.db import models as db_models  # noqa: F401
from app.domains.identity.schemas import UserCreate
from app.domains.identity.services import IdentityService
from app.main import app as fastapi_app


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def users(session):
    """Три пользователя: alice (автор), bob и carol"""
    identity_service = IdentityService(session)
    return {
        name: await identity_service.register_user(
            UserCreate(name=name.capitalize(), email=f"{name}@example.com")
        )
        for name in ("alice", "bob", "carol")
    }


def auth_headers(user) -> dict:
    token = create_access_token({"sub": str(user.uuid)})
    return {"Authorization": f"Bearer {token}"}


def mention(user_or_id, label: str = "someone") -> str:
    user_id = getattr(user_or_id, "uuid", user_or_id)
    return f'<span class="mention" data-mention="{user_id}">@{label}</span>'


@pytest.fixture
def headers():
    return auth_headers
