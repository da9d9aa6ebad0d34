"""FastAPI dependency validators for authentication and authorization."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hisab.access import AccessRequirement
from hisab.common import User

from .queries import UserQueries
from .security_manager import SecurityManager

bearer_scheme = HTTPBearer(auto_error=False)

LOGGER = logging.getLogger(__name__)

NOT_AUTHENTICATED = "غير مصرح"
FORBIDDEN = "ليس لديك صلاحية لتنفيذ هذا الإجراء"


class Validate:
    """Holds validator dependencies for FastAPI authentication/authorization."""

    def __init__(
        self,
        user_queries: UserQueries,
        security_manager: SecurityManager,
    ) -> None:
        """Create a new validator instance.

        :param user_queries: Database connector
        :param security_manager: JWT security manager
        """
        self.user_queries = user_queries
        self.security_manager = security_manager

    async def jwt_token(
        self,
        credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
    ) -> User:
        """Validate a JWT access token and load the user it belongs to."""
        username = (
            self.security_manager.verify_token(credentials.credentials)
            if credentials
            else None
        )
        user = await self.user_queries.get_user(username) if username else None

        if not user:
            LOGGER.debug("JWT token validation failed")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=NOT_AUTHENTICATED,
                headers={"WWW-Authenticate": "Bearer"},
            )

        LOGGER.debug("JWT token validated for user: %s", user.username)
        return user

    def requires(
        self,
        requirement: AccessRequirement,
    ) -> Callable[..., Awaitable[User]]:
        """Return a dependency that enforces an access requirement."""

        async def validator(user: User = Depends(self.jwt_token)) -> User:  # noqa: B008
            if not requirement.allows(user):
                LOGGER.debug(
                    "Access validation failed for user: %s (%s)",
                    user.username,
                    requirement,
                )
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=FORBIDDEN,
                )
            return user

        return validator
