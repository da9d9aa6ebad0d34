"""Client-side data access: request function, query cache, mutations, session."""

from .cache import CacheEntry, EntryStatus, QueryCache
from .context import AppContext
from .http import ApiClient, ApiConnectionError, ApiError, RequestFunction
from .mutations import (
    ACTIVITY_LOGS,
    DASHBOARD,
    DOCUMENTS,
    EMPLOYEES,
    EMPLOYEES_BY_PROJECT,
    EXPENSE_TYPES,
    PROJECTS,
    RESOURCE_DEPENDENCIES,
    TRANSACTIONS,
    USER_PROJECTS,
    USERS,
    Mutation,
    MutationDispatcher,
    dependent_keys,
)
from .session import SessionStore

__all__ = [
    "ACTIVITY_LOGS",
    "DASHBOARD",
    "DOCUMENTS",
    "EMPLOYEES",
    "EMPLOYEES_BY_PROJECT",
    "EXPENSE_TYPES",
    "PROJECTS",
    "RESOURCE_DEPENDENCIES",
    "TRANSACTIONS",
    "USERS",
    "USER_PROJECTS",
    "ApiClient",
    "ApiConnectionError",
    "ApiError",
    "AppContext",
    "CacheEntry",
    "EntryStatus",
    "Mutation",
    "MutationDispatcher",
    "QueryCache",
    "RequestFunction",
    "SessionStore",
]
