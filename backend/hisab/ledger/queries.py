"""All queries related to projects, transactions and the dashboard.

Using the LedgerQueries class as a repository for the ledger tables.
"""

import logging
import sqlite3

from aiosqlite import Connection

from .models import (
    DashboardSummary,
    Project,
    ProjectInput,
    ProjectStatus,
    Transaction,
    TransactionInput,
    TransactionType,
)

LOGGER = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 5


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project.model_validate(dict(row))


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    return Transaction.model_validate(dict(row))


class LedgerQueries:
    """Repository for project and transaction queries."""

    CREATE_PROJECTS_TABLE = """
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            start_date TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'active', -- active, completed, paused
            progress INTEGER NOT NULL DEFAULT 0,
            created_by INTEGER NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """

    CREATE_TRANSACTIONS_TABLE = """
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            amount REAL NOT NULL CHECK (amount > 0),
            type TEXT NOT NULL, -- income, expense
            description TEXT NOT NULL,
            project_id INTEGER REFERENCES projects(id) ON DELETE SET NULL,
            created_by INTEGER NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """

    SELECT_PROJECT = """
        SELECT id, name, description, start_date, status, progress, created_by
        FROM projects
        """

    ADD_PROJECT = """
        INSERT INTO projects
            (name, description, start_date, status, progress, created_by)
        VALUES (?, ?, ?, ?, ?, ?)
        """

    UPDATE_PROJECT = """
        UPDATE projects
        SET name = ?, description = ?, start_date = ?, status = ?, progress = ?
        WHERE id = ?
        """

    DELETE_PROJECT = """DELETE FROM projects WHERE id = ?;"""

    DETACH_PROJECT_TRANSACTIONS = """
        UPDATE transactions SET project_id = NULL WHERE project_id = ?
        """

    SELECT_TRANSACTION = """
        SELECT id, date, amount, type, description, project_id, created_by
        FROM transactions
        """

    ADD_TRANSACTION = """
        INSERT INTO transactions
            (date, amount, type, description, project_id, created_by)
        VALUES (?, ?, ?, ?, ?, ?)
        """

    UPDATE_TRANSACTION = """
        UPDATE transactions
        SET date = ?, amount = ?, type = ?, description = ?, project_id = ?
        WHERE id = ?
        """

    DELETE_TRANSACTION = """DELETE FROM transactions WHERE id = ?;"""

    SUM_BY_TYPE = """
        SELECT COALESCE(SUM(amount), 0) FROM transactions WHERE type = ?
        """

    COUNT_PROJECTS_BY_STATUS = """
        SELECT COUNT(*) FROM projects WHERE status = ?
        """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.connection.row_factory = sqlite3.Row

    async def initialize_tables(self) -> None:
        """Create the projects and transactions tables if they do not exist.

        This method should be called during application startup.
        """
        await self.connection.execute(LedgerQueries.CREATE_PROJECTS_TABLE)
        await self.connection.execute(LedgerQueries.CREATE_TRANSACTIONS_TABLE)
        await self.connection.commit()

    async def list_projects(self) -> list[Project]:
        """Return every project, newest first."""
        cursor = await self.connection.execute(
            LedgerQueries.SELECT_PROJECT + " ORDER BY id DESC",
        )
        return [_row_to_project(row) for row in await cursor.fetchall()]

    async def get_project(self, project_id: int) -> Project | None:
        cursor = await self.connection.execute(
            LedgerQueries.SELECT_PROJECT + " WHERE id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        return _row_to_project(row) if row else None

    async def create_project(self, project: ProjectInput, created_by: int) -> Project:
        """Insert a project owned by the given user.

        :param project: The validated project fields
        :param created_by: Id of the creating user
        :return: The stored project
        """
        cursor = await self.connection.execute(
            LedgerQueries.ADD_PROJECT,
            (
                project.name,
                project.description,
                project.start_date.isoformat(),
                str(project.status),
                project.progress,
                created_by,
            ),
        )
        await self.connection.commit()
        return Project(
            id=cursor.lastrowid,
            created_by=created_by,
            **project.model_dump(),
        )

    async def update_project(self, project_id: int, project: ProjectInput) -> int:
        """Overwrite the editable fields of a project.

        :return: Number of rows updated
        """
        cursor = await self.connection.execute(
            LedgerQueries.UPDATE_PROJECT,
            (
                project.name,
                project.description,
                project.start_date.isoformat(),
                str(project.status),
                project.progress,
                project_id,
            ),
        )
        await self.connection.commit()
        return cursor.rowcount

    async def delete_project(self, project_id: int) -> int:
        """Delete a project, leaving its transactions unassigned.

        :return: Number of rows deleted
        """
        detached = await self.connection.execute(
            LedgerQueries.DETACH_PROJECT_TRANSACTIONS,
            (project_id,),
        )
        LOGGER.debug(
            "Unassigned %s transactions from project %s",
            detached.rowcount,
            project_id,
        )
        cursor = await self.connection.execute(
            LedgerQueries.DELETE_PROJECT,
            (project_id,),
        )
        await self.connection.commit()
        return cursor.rowcount

    async def list_transactions(
        self,
        project_id: int | None = None,
        transaction_type: TransactionType | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """Return transactions, newest first, optionally filtered.

        :param project_id: Only transactions assigned to this project
        :param transaction_type: Only income or only expense transactions
        :param limit: Maximum number of rows to return
        :return: The matching transactions
        """
        conditions = []
        parameters: list[object] = []
        if project_id is not None:
            conditions.append("project_id = ?")
            parameters.append(project_id)
        if transaction_type is not None:
            conditions.append("type = ?")
            parameters.append(str(transaction_type))

        query = LedgerQueries.SELECT_TRANSACTION
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY date DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            parameters.append(limit)

        cursor = await self.connection.execute(query, parameters)
        return [_row_to_transaction(row) for row in await cursor.fetchall()]

    async def get_transaction(self, transaction_id: int) -> Transaction | None:
        cursor = await self.connection.execute(
            LedgerQueries.SELECT_TRANSACTION + " WHERE id = ?",
            (transaction_id,),
        )
        row = await cursor.fetchone()
        return _row_to_transaction(row) if row else None

    async def create_transaction(
        self,
        transaction: TransactionInput,
        created_by: int,
    ) -> Transaction:
        """Insert a transaction recorded by the given user.

        :param transaction: The validated transaction fields
        :param created_by: Id of the recording user
        :return: The stored transaction
        """
        cursor = await self.connection.execute(
            LedgerQueries.ADD_TRANSACTION,
            (
                transaction.date.isoformat(),
                transaction.amount,
                str(transaction.type),
                transaction.description,
                transaction.project_id,
                created_by,
            ),
        )
        await self.connection.commit()
        return Transaction(
            id=cursor.lastrowid,
            created_by=created_by,
            **transaction.model_dump(),
        )

    async def update_transaction(
        self,
        transaction_id: int,
        transaction: TransactionInput,
    ) -> int:
        """Overwrite the editable fields of a transaction.

        :return: Number of rows updated
        """
        cursor = await self.connection.execute(
            LedgerQueries.UPDATE_TRANSACTION,
            (
                transaction.date.isoformat(),
                transaction.amount,
                str(transaction.type),
                transaction.description,
                transaction.project_id,
                transaction_id,
            ),
        )
        await self.connection.commit()
        return cursor.rowcount

    async def delete_transaction(self, transaction_id: int) -> int:
        """Delete the transaction with the given id.

        :return: Number of rows deleted
        """
        cursor = await self.connection.execute(
            LedgerQueries.DELETE_TRANSACTION,
            (transaction_id,),
        )
        await self.connection.commit()
        return cursor.rowcount

    async def _scalar(self, query: str, parameters: tuple[object, ...]) -> float:
        cursor = await self.connection.execute(query, parameters)
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def dashboard_summary(self) -> DashboardSummary:
        """Aggregate totals and the most recent transactions."""
        total_income = await self._scalar(
            LedgerQueries.SUM_BY_TYPE,
            (str(TransactionType.INCOME),),
        )
        total_expenses = await self._scalar(
            LedgerQueries.SUM_BY_TYPE,
            (str(TransactionType.EXPENSE),),
        )
        active_projects = await self._scalar(
            LedgerQueries.COUNT_PROJECTS_BY_STATUS,
            (str(ProjectStatus.ACTIVE),),
        )
        recent = await self.list_transactions(limit=RECENT_TRANSACTIONS_LIMIT)

        return DashboardSummary(
            total_income=total_income,
            total_expenses=total_expenses,
            net_profit=total_income - total_expenses,
            active_projects=int(active_projects),
            recent_transactions=recent,
        )
