"""Write-then-invalidate mutations against the ledger API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .cache import QueryCache
    from .http import RequestFunction

LOGGER = logging.getLogger(__name__)

TRANSACTIONS = "/api/transactions"
PROJECTS = "/api/projects"
USER_PROJECTS = "/api/user-projects"
DASHBOARD = "/api/dashboard"
EMPLOYEES = "/api/employees"
EMPLOYEES_BY_PROJECT = "/api/employees/by-project"
EXPENSE_TYPES = "/api/expense-types"
DOCUMENTS = "/api/documents"
USERS = "/api/users"
ACTIVITY_LOGS = "/api/activity-logs"

RESOURCE_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    TRANSACTIONS: (TRANSACTIONS, DASHBOARD, PROJECTS, ACTIVITY_LOGS),
    PROJECTS: (PROJECTS, USER_PROJECTS, DASHBOARD, ACTIVITY_LOGS),
    EMPLOYEES: (EMPLOYEES, EMPLOYEES_BY_PROJECT),
    EXPENSE_TYPES: (EXPENSE_TYPES,),
    DOCUMENTS: (DOCUMENTS,),
    USERS: (USERS, ACTIVITY_LOGS),
}


def dependent_keys(resource: str) -> tuple[str, ...]:
    """Return every cache key derived from a resource, the resource included."""
    return RESOURCE_DEPENDENCIES.get(resource, (resource,))


@dataclass(frozen=True)
class Mutation:
    """A network write and the cache keys it makes stale.

    :param method: HTTP method of the write
    :param path: Request path
    :param invalidates: Keys invalidated after a successful write
    """

    method: str
    path: str
    invalidates: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "invalidates", tuple(self.invalidates))

    @classmethod
    def create(cls, path: str, invalidates: tuple[str, ...] = ()) -> Mutation:
        return cls("POST", path, invalidates)

    @classmethod
    def update(cls, path: str, invalidates: tuple[str, ...] = ()) -> Mutation:
        return cls("PUT", path, invalidates)

    @classmethod
    def delete(cls, path: str, invalidates: tuple[str, ...] = ()) -> Mutation:
        return cls("DELETE", path, invalidates)


class MutationDispatcher:
    """Issue writes and invalidate dependent cache entries on success."""

    def __init__(self, request: RequestFunction, cache: QueryCache) -> None:
        self._request = request
        self._cache = cache

    async def mutate(self, mutation: Mutation, body: Any | None = None) -> Any:
        """Perform a write, then invalidate the keys it declares.

        If the write fails, the error propagates and no key is invalidated.

        :param mutation: The write to perform
        :param body: JSON body for the write
        :return: The decoded server response
        """
        result = await self._request(mutation.method, mutation.path, body)

        for key in mutation.invalidates:
            self._cache.invalidate(key)
        LOGGER.debug(
            "%s %s invalidated %s",
            mutation.method,
            mutation.path,
            ", ".join(mutation.invalidates) or "nothing",
        )
        return result
