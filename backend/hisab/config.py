"""Configuration management for the ledger service and its client.

This module provides utilities for loading and validating configuration
from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from dotenv import load_dotenv
from jwt.algorithms import get_default_algorithms

from hisab.auth import SecurityManager

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_MINUTES_IN_DAY = 60 * 24
_DEFAULT_PASSWORD_MIN_LENGTH = 8
_DEFAULT_REQUEST_TIMEOUT_SECONDS = 30


def configure_logging(logging_level: str | None) -> None:
    """Configure logging from a level name.

    :param logging_level: Level name such as ``"INFO"``, None for the default
    """
    if not logging_level:
        logging.basicConfig(level=logging.INFO)
        return

    numeric_level = getattr(logging, logging_level.upper(), None)
    if not isinstance(numeric_level, int):
        LOGGER.warning("Invalid log level: %s, using INFO", logging_level)
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level)


@dataclass
class AppConfig:
    """Holds service configuration loaded from environment variables."""

    database_path: str
    logging_level: str | None
    root_path: str

    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    password_min_length: int

    admin_username: str | None
    admin_password: str | None
    admin_name: str

    def __post_init__(self) -> None:
        """Initialize derived configuration attributes."""
        self.security_manager = SecurityManager(
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expire_minutes=self.access_token_expire_minutes,
            password_min_length=self.password_min_length,
        )


@dataclass
class ClientConfig:
    """Holds client configuration loaded from environment variables.

    :param api_base_url: Root URL of the ledger API
    :param session_file: Where the logged-in identity is persisted
    :param stale_time: Seconds a fetched collection stays fresh, None to keep it
        fresh until invalidated
    :param request_timeout: Network timeout in seconds, None for no timeout
    """

    api_base_url: str
    session_file: str
    stale_time: int | None
    request_timeout: int | None


def _checked(
    var_name: str,
    value: T,
    value_checker: Callable[[T], bool] | None,
) -> T:
    if value_checker is not None and not value_checker(value):
        msg = f"Environment variable {var_name} has invalid value: {value}"
        raise ValueError(msg)
    return value


def _parse_int(var_name: str, raw: str) -> int:
    if not raw.isnumeric():
        msg = f"Environment variable {var_name} must be an integer, got: {raw}"
        raise ValueError(msg)
    return int(raw)


def get_env_str(
    var_name: str,
    default: str | None,
    value_checker: Callable[[str], bool] | None = None,
) -> str:
    """Read a string setting.

    :param var_name: Name of the environment variable
    :param default: Value used when the variable is unset; None makes it required
    :param value_checker: Optional predicate the value must satisfy
    :raises ValueError: If a required variable is unset or the check fails
    """
    value = os.getenv(var_name, default)
    if value is None:
        msg = f"Environment variable {var_name} is required"
        raise ValueError(msg)
    return _checked(var_name, value, value_checker)


def get_env_optional_str(var_name: str) -> str | None:
    """Get an environment variable, treating unset and empty alike as None."""
    return os.getenv(var_name) or None


def get_env_optional_int(
    var_name: str,
    default: int | None,
    value_checker: Callable[[int], bool] | None = None,
) -> int | None:
    """Read an integer setting that may be switched off.

    Unset gives ``default``; an empty string gives None.

    :raises ValueError: If the value is not a non-negative integer or fails
        the check
    """
    raw = os.getenv(var_name)
    if raw is None:
        return default
    if not raw:
        return None
    return _checked(var_name, _parse_int(var_name, raw), value_checker)


def get_env_int(
    var_name: str,
    default: int,
    value_checker: Callable[[int], bool] | None = None,
) -> int:
    """Read an integer setting; unset or empty gives ``default``."""
    raw = os.getenv(var_name)
    if not raw:
        return default
    return _checked(var_name, _parse_int(var_name, raw), value_checker)


def load_config_from_env(env_file: str | Path | None) -> AppConfig:
    """Load service configuration from environment variables.

    :param env_file: Optional .env file loaded before reading the environment
    :return: An AppConfig instance populated with environment variable values
    """
    if env_file:
        load_dotenv(dotenv_path=env_file)

    return AppConfig(
        database_path=get_env_str("DATABASE_PATH", "./hisab_sqlite.db"),
        logging_level=get_env_str("LOGGING_LEVEL", "INFO"),
        root_path=get_env_str("ROOT_PATH", ""),
        secret_key=get_env_str("SECRET_KEY", os.urandom(32).hex()),
        algorithm=get_env_str(
            "ALGORITHM",
            SecurityManager.DEFAULT_JWT_ALGORITHM,
            lambda algorithm: algorithm in get_default_algorithms(),
        ),
        access_token_expire_minutes=get_env_int(
            "ACCESS_TOKEN_EXPIRE_MINUTES",
            _MINUTES_IN_DAY,  # default 1 day
            lambda minutes: minutes > 0,
        ),
        password_min_length=get_env_int(
            "PASSWORD_MIN_LENGTH",
            _DEFAULT_PASSWORD_MIN_LENGTH,
            lambda length: length > 0,
        ),
        admin_username=get_env_optional_str("ADMIN_USERNAME"),
        admin_password=get_env_optional_str("ADMIN_PASSWORD"),
        admin_name=get_env_str("ADMIN_NAME", "مدير النظام"),
    )


def load_client_config_from_env(env_file: str | Path | None) -> ClientConfig:
    """Load client configuration from environment variables.

    :param env_file: Optional .env file loaded before reading the environment
    :return: A ClientConfig instance populated with environment variable values
    """
    if env_file:
        load_dotenv(dotenv_path=env_file)

    return ClientConfig(
        api_base_url=get_env_str(
            "API_BASE_URL",
            "http://127.0.0.1:8000",
            lambda url: url.startswith(("http://", "https://")),
        ),
        session_file=get_env_str("SESSION_FILE", "./.hisab_session.json"),
        stale_time=get_env_optional_int(
            "QUERY_STALE_SECONDS",
            None,  # if not set, entries stay fresh until invalidated
            lambda seconds: seconds >= 0,
        ),
        request_timeout=get_env_optional_int(
            "REQUEST_TIMEOUT",
            _DEFAULT_REQUEST_TIMEOUT_SECONDS,
            lambda timeout: timeout > 0,
        ),
    )
