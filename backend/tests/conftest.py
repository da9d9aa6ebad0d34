"""Pytest configuration file for setting up test environment."""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add the backend directory to Python path so tests can import hisab
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from hisab.common import Permission, Role, User, effective_permissions  # noqa: E402


def make_user(
    role: Role = Role.USER,
    permissions: set[Permission] | None = None,
    user_id: int = 1,
) -> User:
    """Build a user holding exactly the given permissions."""
    return User(
        id=user_id,
        username=f"{role}-{user_id}",
        name="",
        role=role,
        permissions=frozenset(
            effective_permissions(role) if permissions is None else permissions,
        ),
    )


@pytest.fixture
def admin() -> User:
    """Create a test user with admin role."""
    return make_user(Role.ADMIN, user_id=1)


@pytest.fixture
def manager() -> User:
    """Create a test user with manager role."""
    return make_user(Role.MANAGER, user_id=2)


@pytest.fixture
def regular_user() -> User:
    """Create a test user with user role."""
    return make_user(Role.USER, user_id=3)


@pytest.fixture
def viewer() -> User:
    """Create a test user with viewer role."""
    return make_user(Role.VIEWER, user_id=4)


@pytest.fixture
def user_factory() -> Callable[..., User]:
    """Return a builder for users with hand-picked permissions."""
    return make_user
