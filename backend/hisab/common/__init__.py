"""Common data models and utilities for the application."""

from .permissions import DEFAULT_ROLE_PERMISSIONS, effective_permissions
from .user import (
    InvalidIdentityError,
    Permission,
    Role,
    User,
    UserPayload,
    parse_permissions,
)

__all__ = [
    "DEFAULT_ROLE_PERMISSIONS",
    "InvalidIdentityError",
    "Permission",
    "Role",
    "User",
    "UserPayload",
    "effective_permissions",
    "parse_permissions",
]
