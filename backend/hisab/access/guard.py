"""Access guard: decide between a protected subtree and a fallback.

A requirement may combine a single permission, a permission list, a single
role and a role list. The decision is the logical AND of every kind that is
specified; a kind left unspecified does not participate.

**Example Usage:**

.. code-block:: python

    guard = AccessGuard(AccessRequirement(permission=Permission.VIEW_REPORTS))
    page = guard.render(context.user, lambda: build_report_page())

    @guarded(MANAGER_OR_ADMIN, fallback=None)
    def project_actions(user: User) -> list[str]:
        return ["edit", "delete"]
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import TYPE_CHECKING, Any, Generic, ParamSpec, TypeVar

from hisab.common import Role

from .evaluator import (
    has_all_permissions,
    has_any_permission,
    has_any_role,
    has_permission,
    has_role,
)

if TYPE_CHECKING:
    from hisab.common import User

LOGGER = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "ليس لديك صلاحية للوصول إلى هذا المحتوى"

T = TypeVar("T")
P = ParamSpec("P")


class _Unset:
    """Marker for an omitted fallback; ``None`` is a valid fallback."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class AccessDenied:
    """Default notice rendered when access is denied and no fallback is given."""

    message: str = ACCESS_DENIED_MESSAGE


@dataclass(frozen=True)
class AccessRequirement:
    """Declarative access requirement.

    :param permission: A single permission that must be held
    :param permissions: Permissions of which any (or all, see require_all) must be
        held
    :param require_all: Require every entry of permissions instead of any one
    :param role: A role the user must have exactly
    :param roles: Roles of which the user must have one
    """

    permission: str | None = None
    permissions: tuple[str, ...] = field(default=())
    require_all: bool = False
    role: Role | None = None
    roles: tuple[Role, ...] = field(default=())

    def __post_init__(self) -> None:
        """Freeze list arguments so requirements stay hashable."""
        object.__setattr__(self, "permissions", tuple(self.permissions))
        object.__setattr__(self, "roles", tuple(self.roles))

    def allows(self, user: User | None) -> bool:
        """Evaluate the requirement for a user.

        :param user: The current user, or None when nobody is logged in
        :return: True if every specified kind of check passes
        """
        if user is None:
            return False

        if self.permission is not None and not has_permission(user, self.permission):
            return False

        if self.permissions:
            check = has_all_permissions if self.require_all else has_any_permission
            if not check(user, self.permissions):
                return False

        if self.role is not None and not has_role(user, self.role):
            return False

        if self.roles and not has_any_role(user, self.roles):
            return False

        return True


def _resolve(value: T | Callable[[], T]) -> T:
    return value() if callable(value) else value


@dataclass(frozen=True)
class AccessGuard(Generic[T]):
    """Render protected content only when the requirement allows the user."""

    requirement: AccessRequirement

    def render(
        self,
        user: User | None,
        content: T | Callable[[], T],
        fallback: Any = UNSET,
    ) -> T | Any:
        """Return content, the fallback, or the default access denied notice.

        Callables are invoked lazily, only for the branch that is returned.

        :param user: The current user
        :param content: Protected content or a factory producing it
        :param fallback: Replacement when denied; omit for :class:`AccessDenied`
        :return: The rendered branch
        """
        if self.requirement.allows(user):
            return _resolve(content)

        LOGGER.debug(
            "Access denied for %s by %s",
            user.username if user else "anonymous",
            self.requirement,
        )
        if fallback is UNSET:
            return AccessDenied()
        return _resolve(fallback)


def guarded(
    requirement: AccessRequirement,
    fallback: Any = UNSET,
) -> Callable[[Callable[P, T]], Callable[P, T | Any]]:
    """Guard a function whose first argument is the current user.

    :param requirement: The access requirement to enforce
    :param fallback: Returned instead of calling the function when denied
    """
    guard: AccessGuard[T] = AccessGuard(requirement)

    def decorator(func: Callable[P, T]) -> Callable[P, T | Any]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T | Any:
            user = args[0] if args else kwargs.get("user")
            return guard.render(user, lambda: func(*args, **kwargs), fallback)

        return wrapper

    return decorator


ADMIN_ONLY = AccessRequirement(role=Role.ADMIN)
MANAGER_OR_ADMIN = AccessRequirement(roles=(Role.ADMIN, Role.MANAGER))
USER_ONLY = AccessRequirement(role=Role.USER)
VIEWER_RESTRICTED = AccessRequirement(roles=(Role.ADMIN, Role.MANAGER, Role.USER))
