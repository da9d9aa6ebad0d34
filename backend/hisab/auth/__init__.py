"""All authentication-related modules and routes."""

from .auth_routes import configure_auth_router
from .queries import UserQueries
from .security_manager import AdminAccount, SecurityManager
from .user_routes import configure_user_router
from .validation import Validate

__all__ = [
    "AdminAccount",
    "SecurityManager",
    "UserQueries",
    "Validate",
    "configure_auth_router",
    "configure_user_router",
]
