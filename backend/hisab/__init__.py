"""Hisab: a small accounting ledger with role and permission based access."""

from .app import configure_fastapi_app, create_app
from .config import load_client_config_from_env, load_config_from_env

__all__ = [
    "configure_fastapi_app",
    "create_app",
    "load_client_config_from_env",
    "load_config_from_env",
]
