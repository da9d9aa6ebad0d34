"""Main entry point for the FastAPI application."""

import argparse
import asyncio
import logging
import sys

import uvicorn

from hisab.app import configure_fastapi_app, create_admin_account
from hisab.config import configure_logging, load_config_from_env

LOGGER = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the Hisab ledger API FastAPI application.",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="Path to the environment configuration file.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the FastAPI application on.",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to run the FastAPI application on.",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes to run.",
    )
    parser.add_argument(
        "--create-admin",
        action="store_true",
        help="Prompt for an administrator account, create it and exit.",
    )
    return parser.parse_args()


def main() -> None:
    """Run the FastAPI application using Uvicorn."""
    args = _parse_args()
    config = load_config_from_env(args.env_file)
    configure_logging(config.logging_level)

    if args.create_admin:
        account = config.security_manager.prompt_admin_account(config.admin_name)
        error = asyncio.run(create_admin_account(config, account))
        if error:
            LOGGER.error(error)
            sys.exit(1)
        LOGGER.info("Created admin account '%s'", account.username)
        return

    app = configure_fastapi_app(config)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
    )


if __name__ == "__main__":
    main()
