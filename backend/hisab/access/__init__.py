"""Permission evaluation and access guarding."""

from .evaluator import (
    has_all_permissions,
    has_any_permission,
    has_any_role,
    has_permission,
    has_role,
    is_admin,
    is_manager,
    is_user,
    is_viewer,
)
from .guard import (
    ACCESS_DENIED_MESSAGE,
    ADMIN_ONLY,
    MANAGER_OR_ADMIN,
    USER_ONLY,
    VIEWER_RESTRICTED,
    AccessDenied,
    AccessGuard,
    AccessRequirement,
    guarded,
)

__all__ = [
    "ACCESS_DENIED_MESSAGE",
    "ADMIN_ONLY",
    "MANAGER_OR_ADMIN",
    "USER_ONLY",
    "VIEWER_RESTRICTED",
    "AccessDenied",
    "AccessGuard",
    "AccessRequirement",
    "guarded",
    "has_all_permissions",
    "has_any_permission",
    "has_any_role",
    "has_permission",
    "has_role",
    "is_admin",
    "is_manager",
    "is_user",
    "is_viewer",
]
