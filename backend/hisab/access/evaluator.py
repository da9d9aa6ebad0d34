"""Pure permission and role checks.

Every check fails closed: an absent user is never granted anything, and an
empty requirement list is never satisfied. Roles are matched exactly; no role
implies another, so a check that should admit administrators must list
``Role.ADMIN`` explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hisab.common import Role

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hisab.common import User


def has_permission(user: User | None, token: str) -> bool:
    """Check whether the user holds a single permission token."""
    if user is None:
        return False
    return token in user.permissions


def has_any_permission(user: User | None, tokens: Iterable[str]) -> bool:
    """Check whether the user holds at least one of the tokens."""
    if user is None:
        return False
    return any(token in user.permissions for token in tokens)


def has_all_permissions(user: User | None, tokens: Iterable[str]) -> bool:
    """Check whether the user holds every one of the tokens.

    An empty token list is rejected rather than vacuously accepted.
    """
    if user is None:
        return False
    tokens = list(tokens)
    if not tokens:
        return False
    return all(token in user.permissions for token in tokens)


def has_role(user: User | None, role: Role) -> bool:
    """Check the user's role by exact equality."""
    if user is None:
        return False
    return user.role == role


def has_any_role(user: User | None, roles: Iterable[Role]) -> bool:
    """Check whether the user's role is one of the given roles."""
    if user is None:
        return False
    return user.role in set(roles)


def is_admin(user: User | None) -> bool:
    return has_role(user, Role.ADMIN)


def is_manager(user: User | None) -> bool:
    return has_role(user, Role.MANAGER)


def is_user(user: User | None) -> bool:
    return has_role(user, Role.USER)


def is_viewer(user: User | None) -> bool:
    return has_role(user, Role.VIEWER)
