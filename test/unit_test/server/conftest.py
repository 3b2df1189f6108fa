from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from namc_portal.core.database.entities.users import MemberType
from namc_portal.core.database.session import get_session
from namc_portal.security.auth_service import issue_token
from namc_portal.security.rate_limit import InMemoryRateLimitStore, RateLimiter
from namc_portal.server.core.config import settings
from namc_portal.server.main import create_app


@pytest.fixture
def app(session_factory):
    """A fresh application wired to the per-test database and an empty rate limiter."""
    app = create_app()

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.state.session_factory = session_factory
    app.state.rate_limiter = RateLimiter(InMemoryRateLimitStore(), settings.rate_limit)
    return app


@pytest_asyncio.fixture(name="client")
async def client_fixture(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client


@pytest_asyncio.fixture
async def member(user_factory):
    return await user_factory(first_name="Maria", last_name="Lopez", city="Oakland", phone="510-555-0100")


@pytest_asyncio.fixture
async def admin(user_factory):
    return await user_factory(first_name="Ada", last_name="Admin", member_type=MemberType.ADMIN.value)


def _bearer(user) -> dict:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def headers_for():
    """Bearer auth headers for any member."""
    return _bearer


@pytest.fixture
def member_headers(member) -> dict:
    return _bearer(member)


@pytest.fixture
def admin_headers(admin) -> dict:
    return _bearer(admin)
