from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncGenerator, Iterable

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent
load_dotenv(TEST_ROOT / ".env", override=False)

# Settings are read once at import, so the test environment must be in place first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["NAMC_PORTAL_ENVIRONMENT"] = "test"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
for name in ("HUBSPOT_API_KEY", "REDIS_URL", "LOGFIRE_ENABLED"):
    os.environ.pop(name, None)

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from namc_portal.core.database.base import utc_now  # noqa: E402
from namc_portal.core.database.entities.users import MemberType, User  # noqa: E402
from namc_portal.core.database.utils import create_all, create_sessionmaker  # noqa: E402
from namc_portal.security.passwords import hash_password  # noqa: E402

TEST_PASSWORD = "Str0ng!Passw0rd"


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
        "http://0.0.0.0",
        "/",  # Allow relative paths (used by ASGI transport)
    )

    orig_sync = httpx._client.Client.request
    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def user_factory(session_factory):
    """Create and persist a member; keyword arguments override the defaults."""
    counter = {"n": 0}

    async def _create(**overrides) -> User:
        counter["n"] += 1
        n = counter["n"]
        password = overrides.pop("password", TEST_PASSWORD)
        fields = {
            "email": f"member{n}@example.com",
            "first_name": f"Member{n}",
            "last_name": "Builder",
            "company": "Bay Area Builders",
            "member_type": MemberType.REGULAR.value,
            "is_active": True,
            "is_verified": True,
            "member_since": utc_now(),
        }
        fields.update(overrides)
        user = User(password_hash=hash_password(password), **fields)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _create


@pytest.fixture
def persist(session_factory):
    """Commit entities in a throwaway session and return them refreshed."""

    async def _persist(*entities):
        async with session_factory() as session:
            session.add_all(entities)
            await session.commit()
            for entity in entities:
                await session.refresh(entity)
        return entities

    return _persist
