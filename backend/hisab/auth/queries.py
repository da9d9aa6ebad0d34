"""All queries related to user accounts.

Using the UserQueries class as a repository for authentication and
account-management queries.
"""

import json
import logging
import sqlite3

from aiosqlite import Connection

from hisab.common import Permission, Role, User, effective_permissions

from .security_manager import SecurityManager

LOGGER = logging.getLogger(__name__)


def _row_to_user(row: sqlite3.Row) -> User:
    role = Role(row["role"])
    extra = [Permission(token) for token in json.loads(row["permissions"] or "[]")]
    return User(
        id=row["id"],
        username=row["username"],
        name=row["name"],
        role=role,
        permissions=effective_permissions(role, extra),
    )


class UserQueries:
    """Repository for user account queries."""

    CREATE_USERS_TABLE = """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            hashed_password BLOB NOT NULL,
            name TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL DEFAULT 'user', -- admin, manager, user, viewer
            permissions TEXT NOT NULL DEFAULT '[]', -- extra grants beyond the role
            active INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """

    COUNT_USERS = """SELECT COUNT(*) FROM users;"""

    SELECT_USER = """
        SELECT id, username, name, role, permissions FROM users
        """

    GET_PASSWORD_HASH = """
        SELECT hashed_password FROM users WHERE username = ? AND active = 1;
        """

    ADD_USER = """
        INSERT INTO users (username, hashed_password, name, role, permissions)
        VALUES (?, ?, ?, ?, ?)
        """

    UPDATE_USER = """
        UPDATE users SET name = ?, role = ?, permissions = ? WHERE id = ?
        """

    UPDATE_USER_PASSWORD = """
        UPDATE users SET hashed_password = ? WHERE username = ?
        """

    DELETE_USER = """
        DELETE FROM users WHERE id = ?;
        """

    def __init__(
        self,
        connection: Connection,
        security_manager: SecurityManager,
    ) -> None:
        self.connection = connection
        self.connection.row_factory = sqlite3.Row
        self.security_manager = security_manager

    async def initialize_tables(self) -> None:
        """Create the users table if it does not exist.

        This method should be called during application startup.
        """
        await self.connection.execute(UserQueries.CREATE_USERS_TABLE)
        await self.connection.commit()

    async def bootstrap_admin(
        self,
        admin_credentials: tuple[str, str] | None,
        admin_name: str = "",
    ) -> bool:
        """Create the first administrator when the users table is empty.

        :param admin_credentials: Optional (username, password) tuple
        :param admin_name: Display name of the administrator
        :return: True if an administrator account was created
        """
        if await self.count_users() != 0:
            return False

        if admin_credentials is None:
            LOGGER.warning(
                "No users found in database and no admin credentials "
                "provided. The server will start without an admin account.",
            )
            return False

        username, password = admin_credentials
        error = await self.create_account(username, password, admin_name, Role.ADMIN)
        if error:
            msg = f"Could not create admin account '{username}': {error}"
            raise ValueError(msg)

        LOGGER.info(
            "No users found in database; created admin account '%s'",
            username,
        )
        return True

    async def count_users(self) -> int:
        """Return the number of users in the users table."""
        cursor = await self.connection.execute(UserQueries.COUNT_USERS)
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def authenticate_user(self, username: str, password: str) -> User | None:
        """Check credentials and return the matching user.

        :param username: The username of the user
        :param password: The plaintext password to verify
        :return: The User object if authentication is successful, None otherwise
        """
        cursor = await self.connection.execute(
            UserQueries.GET_PASSWORD_HASH,
            (username,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        hashed_password = row["hashed_password"]
        if not self.security_manager.check_password(password, hashed_password):
            return None
        return await self.get_user(username)

    async def get_user(self, username: str) -> User | None:
        """Return the active user with the given username."""
        cursor = await self.connection.execute(
            UserQueries.SELECT_USER + " WHERE username = ? AND active = 1",
            (username,),
        )
        row = await cursor.fetchone()
        return _row_to_user(row) if row else None

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Return the user with the given id."""
        cursor = await self.connection.execute(
            UserQueries.SELECT_USER + " WHERE id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return _row_to_user(row) if row else None

    async def list_users(self) -> list[User]:
        """Return every user ordered by id."""
        cursor = await self.connection.execute(
            UserQueries.SELECT_USER + " ORDER BY id",
        )
        return [_row_to_user(row) for row in await cursor.fetchall()]

    async def create_account(  # noqa: PLR0913
        self,
        username: str,
        password: str,
        name: str,
        role: Role,
        extra_permissions: list[Permission] | None = None,
    ) -> str | None:
        """Create a new user account.

        :param username: The desired username
        :param password: The desired password
        :param name: Display name
        :param role: The user's role
        :param extra_permissions: Permissions granted beyond the role defaults
        :return: An error message if creation failed, None otherwise
        """
        error = self.security_manager.validate_password(password)
        if error:
            return error

        hashed_password = self.security_manager.hash_password(password)
        try:
            await self.connection.execute(
                UserQueries.ADD_USER,
                (
                    username,
                    hashed_password,
                    name,
                    str(role),
                    json.dumps(sorted(extra_permissions or [])),
                ),
            )
            await self.connection.commit()
        except sqlite3.IntegrityError:
            await self.connection.rollback()
            return "اسم المستخدم موجود مسبقاً"
        return None

    async def update_account(
        self,
        user_id: int,
        name: str,
        role: Role,
        extra_permissions: list[Permission],
    ) -> int:
        """Update name, role and extra permissions of a user.

        :return: Number of rows updated
        """
        cursor = await self.connection.execute(
            UserQueries.UPDATE_USER,
            (name, str(role), json.dumps(sorted(extra_permissions)), user_id),
        )
        await self.connection.commit()
        return cursor.rowcount

    async def delete_account(self, user_id: int) -> int:
        """Delete the user account with the given id.

        :return: Number of rows deleted
        """
        cursor = await self.connection.execute(UserQueries.DELETE_USER, (user_id,))
        await self.connection.commit()
        return cursor.rowcount

    async def change_password(self, username: str, new_password: str) -> str | None:
        """Change the password for the given username.

        :return: An error message if the password change failed, None otherwise
        """
        error = self.security_manager.validate_password(new_password)
        if error:
            return error

        hashed_password = self.security_manager.hash_password(new_password)
        cursor = await self.connection.execute(
            UserQueries.UPDATE_USER_PASSWORD,
            (hashed_password, username),
        )
        await self.connection.commit()
        if cursor.rowcount == 0:
            return "المستخدم غير موجود"
        return None
