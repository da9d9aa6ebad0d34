"""FastAPI application factory for the ledger service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from aiosqlite import connect as aiosqlite_connect
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hisab.activity import ActivityQueries
from hisab.activity.routes import configure_activity_router
from hisab.auth import (
    UserQueries,
    Validate,
    configure_auth_router,
    configure_user_router,
)
from hisab.common import Role
from hisab.config import configure_logging, load_config_from_env
from hisab.ledger import (
    LedgerQueries,
    configure_dashboard_router,
    configure_project_router,
    configure_transaction_router,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from hisab.auth import AdminAccount
    from hisab.config import AppConfig

LOGGER = logging.getLogger(__name__)


def _ensure_database_directory(database_path: str) -> None:
    parent = Path(database_path).parent
    if not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Created directory for database at %s", parent)

    if not Path(database_path).exists():
        LOGGER.info("Database file does not exist at %s", database_path)


def _admin_credentials(config: AppConfig) -> tuple[str, str] | None:
    if config.admin_username and config.admin_password:
        return config.admin_username, config.admin_password
    return None


async def create_admin_account(
    config: AppConfig,
    account: AdminAccount,
) -> str | None:
    """Create an administrator account outside of a running server.

    :param config: Application configuration
    :param account: The administrator to create
    :return: An error message if creation failed, None otherwise
    """
    _ensure_database_directory(config.database_path)
    async with aiosqlite_connect(config.database_path) as db_connection:
        user_queries = UserQueries(db_connection, config.security_manager)
        await user_queries.initialize_tables()
        return await user_queries.create_account(
            account.username,
            account.password,
            account.name,
            Role.ADMIN,
        )


def configure_fastapi_app(config: AppConfig) -> FastAPI:
    """Configure and return the FastAPI application.

    :param config: Application configuration
    :return: Configured FastAPI application
    """
    _ensure_database_directory(config.database_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[Any, Any]:
        """Application lifespan manager.

        Opens the database connection and wires the routers to it.
        """
        LOGGER.info("Hisab ledger API is starting")

        async with aiosqlite_connect(config.database_path) as db_connection:
            await db_connection.execute("PRAGMA foreign_keys = ON")

            user_queries = UserQueries(db_connection, config.security_manager)
            ledger_queries = LedgerQueries(db_connection)
            activity_queries = ActivityQueries(db_connection)
            await user_queries.initialize_tables()
            await ledger_queries.initialize_tables()
            await activity_queries.initialize_tables()
            await user_queries.bootstrap_admin(
                _admin_credentials(config),
                config.admin_name,
            )

            validate = Validate(user_queries, config.security_manager)

            auth_router = configure_auth_router(
                APIRouter(),
                validate,
                activity_queries,
            )
            user_router = configure_user_router(
                APIRouter(),
                validate,
                activity_queries,
            )
            project_router = configure_project_router(
                APIRouter(),
                validate,
                ledger_queries,
                activity_queries,
            )
            transaction_router = configure_transaction_router(
                APIRouter(),
                validate,
                ledger_queries,
                activity_queries,
            )
            dashboard_router = configure_dashboard_router(
                APIRouter(),
                validate,
                ledger_queries,
            )
            activity_router = configure_activity_router(
                APIRouter(),
                validate,
                activity_queries,
            )

            app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
            app.include_router(user_router, prefix="/api/users", tags=["users"])
            app.include_router(
                project_router,
                prefix="/api/projects",
                tags=["projects"],
            )
            app.include_router(
                transaction_router,
                prefix="/api/transactions",
                tags=["transactions"],
            )
            app.include_router(
                dashboard_router,
                prefix="/api/dashboard",
                tags=["dashboard"],
            )
            app.include_router(
                activity_router,
                prefix="/api/activity-logs",
                tags=["activity"],
            )

            yield

            LOGGER.info("Hisab ledger API is shutting down")

    app = FastAPI(
        title="Hisab Ledger API",
        version="0.1.0",
        lifespan=lifespan,
        root_path=config.root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def read_root() -> str:
        return "Hisab Ledger API"

    return app


def create_app(env_file: str | None = os.environ.get("ENV_FILE", ".env")) -> FastAPI:
    """Create and configure the FastAPI application.

    The default here is for uvicorn command line usage, in which case the user
    should set ENV_FILE environment variable if they want a different file.

    :param env_file: Optional path to the environment configuration file
    :return: Configured FastAPI application
    """
    config = load_config_from_env(env_file)
    configure_logging(config.logging_level)
    return configure_fastapi_app(config)
