"""Fundamental user data model for the app.

Roles and permission tokens are closed enumerations. Identity payloads coming
from the network or from disk go through :class:`UserPayload`, which rejects
unknown role or permission strings before a :class:`User` is ever built.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ValidationError


class Role(StrEnum):
    """Coarse user classification. Roles are compared by exact equality only."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    VIEWER = "viewer"


class Permission(StrEnum):
    """Known permission tokens."""

    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_USERS = "manage_users"
    VIEW_USERS = "view_users"
    MANAGE_PROJECTS = "manage_projects"
    VIEW_PROJECTS = "view_projects"
    MANAGE_PROJECT_TRANSACTIONS = "manage_project_transactions"
    VIEW_PROJECT_TRANSACTIONS = "view_project_transactions"
    MANAGE_TRANSACTIONS = "manage_transactions"
    VIEW_TRANSACTIONS = "view_transactions"
    MANAGE_DOCUMENTS = "manage_documents"
    VIEW_DOCUMENTS = "view_documents"
    VIEW_REPORTS = "view_reports"
    VIEW_ACTIVITY_LOGS = "view_activity_logs"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_INCOME = "view_income"


class InvalidIdentityError(ValueError):
    """Raised when an identity payload has an unknown role or permission."""


def parse_permissions(tokens: Iterable[str]) -> frozenset[Permission]:
    """Convert raw permission strings to a validated permission set.

    :param tokens: Raw permission strings
    :return: The set of permissions
    :raises InvalidIdentityError: If any token is not a known permission
    """
    permissions = set()
    for token in tokens:
        try:
            permissions.add(Permission(token))
        except ValueError as e:
            msg = f"Unknown permission: {token!r}"
            raise InvalidIdentityError(msg) from e
    return frozenset(permissions)


class UserPayload(BaseModel):
    """Serialized identity as exchanged with the server and the session file."""

    id: int
    username: str
    name: str = ""
    role: Role
    permissions: list[Permission] = []

    @classmethod
    def from_user(cls, user: User) -> UserPayload:
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            role=user.role,
            permissions=sorted(user.permissions),
        )

    def to_user(self) -> User:
        return User(
            id=self.id,
            username=self.username,
            name=self.name,
            role=self.role,
            permissions=frozenset(self.permissions),
        )


@dataclass(frozen=True)
class User:
    """Data structure representing an authenticated user.

    :param int id: Server-side identifier
    :param str username: Login name
    :param str name: Display name
    :param Role role: The role of the user
    :param frozenset permissions: Effective permission set
    """

    id: int
    username: str
    name: str
    role: Role
    permissions: frozenset[Permission] = field(default_factory=frozenset)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> User:
        """Build a user from an untrusted identity payload.

        :param data: Mapping with id, username, role and permissions
        :return: The validated user
        :raises InvalidIdentityError: If the payload is malformed
        """
        try:
            return UserPayload.model_validate(data).to_user()
        except ValidationError as e:
            msg = f"Invalid identity payload: {e.error_count()} error(s)"
            raise InvalidIdentityError(msg) from e

    def to_payload(self) -> dict[str, Any]:
        return UserPayload.from_user(self).model_dump(mode="json")
