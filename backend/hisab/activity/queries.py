"""All queries related to the activity log.

Using the ActivityQueries class as a repository for the audit trail written by
every account, project and transaction change.
"""

import datetime as dt
import logging
import sqlite3

from aiosqlite import Connection

from .models import ActivityAction, ActivityLog, EntityType

LOGGER = logging.getLogger(__name__)


class ActivityQueries:
    """Repository for activity log queries."""

    CREATE_ACTIVITY_LOGS_TABLE = """
        CREATE TABLE IF NOT EXISTS activity_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL, -- login, logout, create, update, delete
            entity_type TEXT NOT NULL, -- user, project, transaction
            entity_id INTEGER NOT NULL,
            details TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            user_id INTEGER NOT NULL
        );
        """

    SELECT_ACTIVITY_LOG = """
        SELECT id, action, entity_type, entity_id, details, timestamp, user_id
        FROM activity_logs
        """

    ADD_ACTIVITY_LOG = """
        INSERT INTO activity_logs
            (action, entity_type, entity_id, details, timestamp, user_id)
        VALUES (?, ?, ?, ?, ?, ?)
        """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.connection.row_factory = sqlite3.Row

    async def initialize_tables(self) -> None:
        """Create the activity_logs table if it does not exist.

        This method should be called during application startup.
        """
        await self.connection.execute(ActivityQueries.CREATE_ACTIVITY_LOGS_TABLE)
        await self.connection.commit()

    async def record(  # noqa: PLR0913
        self,
        action: ActivityAction,
        entity_type: EntityType,
        entity_id: int,
        details: str,
        user_id: int,
    ) -> ActivityLog:
        """Append one entry to the activity log.

        :param action: What was done
        :param entity_type: Kind of record it was done to
        :param entity_id: Id of that record
        :param details: Human readable Arabic description
        :param user_id: Id of the acting user
        :return: The stored entry
        """
        timestamp = dt.datetime.now(dt.UTC)
        cursor = await self.connection.execute(
            ActivityQueries.ADD_ACTIVITY_LOG,
            (
                str(action),
                str(entity_type),
                entity_id,
                details,
                timestamp.isoformat(),
                user_id,
            ),
        )
        await self.connection.commit()
        LOGGER.debug("Recorded %s of %s %s", action, entity_type, entity_id)
        return ActivityLog(
            id=cursor.lastrowid,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            timestamp=timestamp,
            user_id=user_id,
        )

    async def list_activity(
        self,
        user_id: int | None = None,
        entity_type: EntityType | None = None,
    ) -> list[ActivityLog]:
        """Return log entries, newest first, optionally filtered.

        :param user_id: Only entries written by this user
        :param entity_type: Only entries about this kind of record
        :return: The matching entries
        """
        conditions = []
        parameters: list[object] = []
        if user_id is not None:
            conditions.append("user_id = ?")
            parameters.append(user_id)
        if entity_type is not None:
            conditions.append("entity_type = ?")
            parameters.append(str(entity_type))

        query = ActivityQueries.SELECT_ACTIVITY_LOG
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY id DESC"

        cursor = await self.connection.execute(query, parameters)
        return [
            ActivityLog.model_validate(dict(row)) for row in await cursor.fetchall()
        ]
