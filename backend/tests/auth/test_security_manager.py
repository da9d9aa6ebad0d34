"""Unit tests for password rules and JWT handling."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from hisab.auth import AdminAccount, SecurityManager
from hisab.common import User

SECRET = "x" * 64


@pytest.fixture
def security_manager() -> SecurityManager:
    return SecurityManager(secret_key=SECRET, password_min_length=10)


class TestSecurityManager:
    """Test suite for SecurityManager."""

    def test_short_secret_is_replaced(self) -> None:
        """Test that a weak secret key is never used for signing."""
        manager = SecurityManager(secret_key="short")

        assert manager.secret_key != "short"
        assert len(manager.secret_key) >= SecurityManager.MINIMUM_JWT_SECRET_KEY_LENGTH

    def test_validate_password(self, security_manager: SecurityManager) -> None:
        """Test the minimum length rule."""
        assert security_manager.validate_password("a" * 10) is None
        assert "10" in security_manager.validate_password("a" * 9)

    def test_token_round_trip(
        self,
        security_manager: SecurityManager,
        admin: User,
    ) -> None:
        """Test that an issued token verifies to the username."""
        token = security_manager.create_access_token(admin)

        assert security_manager.verify_token(token) == admin.username

    def test_token_from_other_key_is_rejected(
        self,
        security_manager: SecurityManager,
        admin: User,
    ) -> None:
        """Test that a token signed with another secret is refused."""
        token = SecurityManager(secret_key="y" * 64).create_access_token(admin)

        assert security_manager.verify_token(token) is None

    def test_expired_token_is_rejected(
        self,
        security_manager: SecurityManager,
    ) -> None:
        """Test that an expired token is refused."""
        token = jwt.encode(
            {
                "sub": "admin",
                "exp": datetime.now(UTC) - timedelta(minutes=1),
                "type": "access_token",
            },
            SECRET,
            algorithm=security_manager.algorithm,
        )

        assert security_manager.verify_token(token) is None

    def test_wrong_token_type_is_rejected(
        self,
        security_manager: SecurityManager,
    ) -> None:
        """Test that only access tokens are accepted."""
        token = jwt.encode(
            {"sub": "admin", "type": "refresh_token"},
            SECRET,
            algorithm=security_manager.algorithm,
        )

        assert security_manager.verify_token(token) is None

    def test_garbage_is_rejected(self, security_manager: SecurityManager) -> None:
        """Test that a malformed token is refused."""
        assert security_manager.verify_token("not-a-jwt") is None


class TestPasswords:
    """Test suite for hashing and the interactive prompt."""

    def test_hash_and_check(self) -> None:
        """Test that only the original password matches its hash."""
        hashed = SecurityManager.hash_password("correct-horse")

        assert SecurityManager.check_password("correct-horse", hashed)
        assert not SecurityManager.check_password("wrong-horse", hashed)

    def test_prompt_admin_account(
        self,
        security_manager: SecurityManager,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that short and mismatched passwords are asked again."""
        inputs = iter(["  root ", ""])
        passwords = iter(
            [
                "short",
                "long-password-1",
                "typo-password-1",
                "long-password-2",
                "long-password-2",
            ],
        )
        monkeypatch.setattr("builtins.input", lambda _: next(inputs))
        monkeypatch.setattr(
            "hisab.auth.security_manager.getpass.getpass",
            lambda _: next(passwords),
        )

        account = security_manager.prompt_admin_account("مدير النظام")

        assert account == AdminAccount("root", "long-password-2", "مدير النظام")
