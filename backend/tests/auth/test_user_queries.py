"""Tests for the user account repository on an in-memory database."""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from hisab.app import create_admin_account
from hisab.auth import AdminAccount, SecurityManager, UserQueries
from hisab.common import DEFAULT_ROLE_PERMISSIONS, Permission, Role
from hisab.config import AppConfig

PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture
async def user_queries() -> AsyncGenerator[UserQueries, None]:
    async with aiosqlite.connect(":memory:") as connection:
        queries = UserQueries(connection, SecurityManager(secret_key="k" * 64))
        await queries.initialize_tables()
        yield queries


@pytest.mark.asyncio
async def test_create_and_authenticate(user_queries: UserQueries) -> None:
    """Test that a created account can log in with its password only."""
    error = await user_queries.create_account("sara", PASSWORD, "سارة", Role.MANAGER)

    assert error is None
    user = await user_queries.authenticate_user("sara", PASSWORD)
    assert user is not None
    assert user.role is Role.MANAGER
    assert user.permissions == DEFAULT_ROLE_PERMISSIONS[Role.MANAGER]
    assert await user_queries.authenticate_user("sara", "wrong-password") is None
    assert await user_queries.authenticate_user("nobody", PASSWORD) is None


@pytest.mark.asyncio
async def test_duplicate_username(user_queries: UserQueries) -> None:
    """Test that usernames are unique."""
    await user_queries.create_account("sara", PASSWORD, "", Role.USER)

    error = await user_queries.create_account("sara", PASSWORD, "", Role.USER)

    assert error == "اسم المستخدم موجود مسبقاً"
    assert await user_queries.count_users() == 1


@pytest.mark.asyncio
async def test_short_password_is_refused(user_queries: UserQueries) -> None:
    """Test that password rules apply to new accounts."""
    assert await user_queries.create_account("sara", "short", "", Role.USER)
    assert await user_queries.count_users() == 0


@pytest.mark.asyncio
async def test_extra_permissions(user_queries: UserQueries) -> None:
    """Test that individual grants extend the role defaults."""
    await user_queries.create_account(
        "omar",
        PASSWORD,
        "",
        Role.VIEWER,
        [Permission.VIEW_INCOME],
    )

    user = await user_queries.get_user("omar")

    assert user is not None
    assert Permission.VIEW_INCOME in user.permissions
    assert Permission.MANAGE_TRANSACTIONS not in user.permissions


@pytest.mark.asyncio
async def test_update_and_delete(user_queries: UserQueries) -> None:
    """Test role changes and account removal."""
    await user_queries.create_account("omar", PASSWORD, "", Role.VIEWER)
    user = await user_queries.get_user("omar")
    assert user is not None

    assert await user_queries.update_account(user.id, "عمر", Role.USER, []) == 1
    updated = await user_queries.get_user_by_id(user.id)
    assert updated is not None
    assert updated.role is Role.USER
    assert updated.name == "عمر"

    assert await user_queries.delete_account(user.id) == 1
    assert await user_queries.get_user_by_id(user.id) is None
    assert await user_queries.update_account(user.id, "", Role.USER, []) == 0


@pytest.mark.asyncio
async def test_change_password(user_queries: UserQueries) -> None:
    """Test that only the new password works after a change."""
    await user_queries.create_account("sara", PASSWORD, "", Role.USER)

    assert await user_queries.change_password("sara", "another-long-password") is None
    assert await user_queries.authenticate_user("sara", PASSWORD) is None
    assert await user_queries.authenticate_user("sara", "another-long-password")
    assert await user_queries.change_password("ghost", "another-long-password")


class TestBootstrapAdmin:
    """Test suite for creating the first administrator."""

    @pytest.mark.asyncio
    async def test_creates_admin_on_empty_database(
        self,
        user_queries: UserQueries,
    ) -> None:
        """Test that credentials seed an admin account."""
        assert await user_queries.bootstrap_admin(("root", PASSWORD), "مدير")

        admin = await user_queries.get_user("root")
        assert admin is not None
        assert admin.role is Role.ADMIN

    @pytest.mark.asyncio
    async def test_skips_when_users_exist(self, user_queries: UserQueries) -> None:
        """Test that an existing database is left alone."""
        await user_queries.create_account("sara", PASSWORD, "", Role.USER)

        assert not await user_queries.bootstrap_admin(("root", PASSWORD))
        assert await user_queries.get_user("root") is None

    @pytest.mark.asyncio
    async def test_skips_without_credentials(self, user_queries: UserQueries) -> None:
        """Test that no account is made up when credentials are missing."""
        assert not await user_queries.bootstrap_admin(None)
        assert await user_queries.count_users() == 0

    @pytest.mark.asyncio
    async def test_invalid_credentials_raise(self, user_queries: UserQueries) -> None:
        """Test that a bad configured password stops startup."""
        with pytest.raises(ValueError, match="root"):
            await user_queries.bootstrap_admin(("root", "short"))


@pytest.mark.asyncio
async def test_create_admin_account_on_new_database(tmp_path: Path) -> None:
    """Test the command line admin creation against a database file."""
    config = AppConfig(
        database_path=str(tmp_path / "data" / "ledger.db"),
        logging_level=None,
        root_path="",
        secret_key="k" * 64,
        algorithm="HS512",
        access_token_expire_minutes=60,
        password_min_length=8,
        admin_username=None,
        admin_password=None,
        admin_name="مدير النظام",
    )
    account = AdminAccount("root", PASSWORD, "مدير")

    assert await create_admin_account(config, account) is None
    assert await create_admin_account(config, account) == "اسم المستخدم موجود مسبقاً"

    async with aiosqlite.connect(config.database_path) as connection:
        queries = UserQueries(connection, config.security_manager)
        admin = await queries.authenticate_user("root", PASSWORD)

    assert admin is not None
    assert admin.role is Role.ADMIN
    assert admin.name == "مدير"
