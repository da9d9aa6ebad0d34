"""Audit trail of account, project and transaction changes."""

from .models import ActivityAction, ActivityLog, EntityType
from .queries import ActivityQueries

__all__ = [
    "ActivityAction",
    "ActivityLog",
    "ActivityQueries",
    "EntityType",
]
