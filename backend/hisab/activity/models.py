from __future__ import annotations

import datetime as dt
from enum import StrEnum

from pydantic import BaseModel


class ActivityAction(StrEnum):
    LOGIN = "login"
    LOGOUT = "logout"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityType(StrEnum):
    USER = "user"
    PROJECT = "project"
    TRANSACTION = "transaction"


class ActivityLog(BaseModel):
    id: int
    action: ActivityAction
    entity_type: EntityType
    entity_id: int
    details: str
    timestamp: dt.datetime
    user_id: int
