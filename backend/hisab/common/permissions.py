"""Default permission sets granted to each role."""

from collections.abc import Iterable

from .user import Permission, Role

_VIEWER_PERMISSIONS = frozenset(
    {
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_PROJECTS,
        Permission.VIEW_PROJECT_TRANSACTIONS,
        Permission.VIEW_TRANSACTIONS,
        Permission.VIEW_DOCUMENTS,
    },
)

_USER_PERMISSIONS = _VIEWER_PERMISSIONS | {
    Permission.MANAGE_PROJECT_TRANSACTIONS,
    Permission.MANAGE_TRANSACTIONS,
    Permission.MANAGE_DOCUMENTS,
}

_MANAGER_PERMISSIONS = _USER_PERMISSIONS | {
    Permission.VIEW_USERS,
    Permission.MANAGE_PROJECTS,
    Permission.VIEW_REPORTS,
}

_ADMIN_PERMISSIONS = _MANAGER_PERMISSIONS | {
    Permission.MANAGE_USERS,
    Permission.VIEW_ACTIVITY_LOGS,
    Permission.MANAGE_SETTINGS,
}

DEFAULT_ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: _ADMIN_PERMISSIONS,
    Role.MANAGER: _MANAGER_PERMISSIONS,
    Role.USER: _USER_PERMISSIONS,
    Role.VIEWER: _VIEWER_PERMISSIONS,
}


def effective_permissions(
    role: Role,
    extra: Iterable[Permission] = (),
) -> frozenset[Permission]:
    """Return the role's default permissions merged with per-user extras.

    :param role: The user's role
    :param extra: Permissions granted to the user individually
    :return: The union of both sets
    """
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset()) | frozenset(extra)
