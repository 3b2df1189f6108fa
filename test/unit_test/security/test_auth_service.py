"""Unit tests for AuthService login, lockout and token resolution."""

from datetime import timedelta

import pytest

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.users import MemberType, User
from namc_portal.security.auth_service import (
    LOCKOUT_DURATION,
    MAX_FAILED_ATTEMPTS,
    AuthService,
    can_access_admin,
    is_admin,
    issue_token,
)

PASSWORD = "Str0ng!Passw0rd"


async def reload(session_factory, user_id: str) -> User:
    async with session_factory() as session:
        return await session.get(User, user_id)


class TestAuthenticate:
    async def test_success_resets_counters(self, session, session_factory, user_factory):
        user = await user_factory(failed_login_attempts=3)

        result = await AuthService(session).authenticate(f"  {user.email.upper()} ", PASSWORD, "10.0.0.1")

        assert result is not None and result.id == user.id
        stored = await reload(session_factory, user.id)
        assert stored.failed_login_attempts == 0
        assert stored.last_successful_login is not None

    async def test_unknown_email(self, session):
        assert await AuthService(session).authenticate("ghost@example.com", PASSWORD) is None

    async def test_wrong_password_counts(self, session, session_factory, user_factory):
        user = await user_factory()

        assert await AuthService(session).authenticate(user.email, "Wrong!Passw0rd") is None

        stored = await reload(session_factory, user.id)
        assert stored.failed_login_attempts == 1
        assert stored.last_failed_login is not None
        assert stored.locked_until is None

    async def test_lockout_after_max_attempts(self, session, session_factory, user_factory):
        user = await user_factory(failed_login_attempts=MAX_FAILED_ATTEMPTS - 1)
        before = utc_now()

        await AuthService(session).authenticate(user.email, "Wrong!Passw0rd")

        stored = await reload(session_factory, user.id)
        assert stored.locked_until >= before + LOCKOUT_DURATION

    async def test_locked_account_rejects_correct_password(self, session, user_factory):
        user = await user_factory(locked_until=utc_now() + timedelta(minutes=5))

        assert await AuthService(session).authenticate(user.email, PASSWORD) is None

    async def test_expired_lock_allows_login(self, session, user_factory):
        user = await user_factory(locked_until=utc_now() - timedelta(minutes=1), failed_login_attempts=5)

        assert await AuthService(session).authenticate(user.email, PASSWORD) is not None

    async def test_wrong_password_after_expired_lock_starts_a_new_count(self, session, session_factory, user_factory):
        user = await user_factory(
            locked_until=utc_now() - timedelta(minutes=1), failed_login_attempts=MAX_FAILED_ATTEMPTS
        )

        assert await AuthService(session).authenticate(user.email, "Wrong!Passw0rd") is None

        stored = await reload(session_factory, user.id)
        assert stored.failed_login_attempts == 1
        assert stored.locked_until is None

    async def test_inactive_account(self, session, user_factory):
        user = await user_factory(is_active=False)

        assert await AuthService(session).authenticate(user.email, PASSWORD) is None


class TestTokenResolution:
    async def test_valid_token(self, session, user_factory):
        user = await user_factory()

        resolved = await AuthService(session).get_user_from_token(issue_token(user))

        assert resolved.id == user.id

    @pytest.mark.parametrize("overrides", [{"is_active": False}, {"is_verified": False}])
    async def test_disabled_members_do_not_resolve(self, session, user_factory, overrides):
        user = await user_factory(**overrides)

        assert await AuthService(session).get_user_from_token(issue_token(user)) is None

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    async def test_bad_tokens(self, session, token):
        assert await AuthService(session).get_user_from_token(token) is None


class TestRolePredicates:
    def test_is_admin(self):
        assert is_admin(User(email="a@x.org", password_hash="h", first_name="A", last_name="B", member_type="admin"))
        assert not is_admin(User(email="a@x.org", password_hash="h", first_name="A", last_name="B"))
        assert not is_admin(None)

    @pytest.mark.parametrize(
        "active,verified,expected", [(True, True, True), (False, True, False), (True, False, False)]
    )
    def test_admin_access_needs_active_verified(self, active, verified, expected):
        user = User(
            email="a@x.org",
            password_hash="h",
            first_name="A",
            last_name="B",
            member_type=MemberType.ADMIN.value,
            is_active=active,
            is_verified=verified,
        )

        assert can_access_admin(user) is expected
