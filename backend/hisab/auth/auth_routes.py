"""Authentication routes for the FastAPI application.

Provides endpoints for login, logout, session checks and password changes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from hisab.activity import ActivityAction, ActivityQueries, EntityType
from hisab.common import User, UserPayload

from .models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordChangeRequest,
    user_response,
)
from .queries import UserQueries
from .security_manager import SecurityManager
from .validation import Validate

LOGGER = logging.getLogger(__name__)


async def _login(
    user_queries: UserQueries,
    security_manager: SecurityManager,
    credentials: LoginRequest,
) -> LoginResponse:
    user = await user_queries.authenticate_user(
        credentials.username,
        credentials.password,
    )

    if not user:
        LOGGER.info("Failed login attempt for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="معلومات تسجيل الدخول غير صحيحة",
        )

    LOGGER.info("User %s logged in", user.username)
    return LoginResponse(
        access_token=security_manager.create_access_token(user),
        user=user_response(user),
    )


async def _change_password(
    user_queries: UserQueries,
    new_password: str,
    user: User,
) -> MessageResponse:
    error = await user_queries.change_password(user.username, new_password)

    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error,
        )
    return MessageResponse(message="تم تغيير كلمة المرور بنجاح")


def configure_auth_router(
    router: APIRouter,
    validate: Validate,
    activity_queries: ActivityQueries,
) -> APIRouter:
    """Configure the authentication router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance holding queries and JWT operations
    :param activity_queries: Repository recording logins and logouts
    :return: The configured APIRouter
    """
    user_queries = validate.user_queries
    security_manager = validate.security_manager

    @router.post("/login", response_model=LoginResponse)
    async def login(credentials: LoginRequest) -> LoginResponse:
        response = await _login(user_queries, security_manager, credentials)
        await activity_queries.record(
            ActivityAction.LOGIN,
            EntityType.USER,
            response.user.id,
            "تسجيل دخول",
            response.user.id,
        )
        return response

    @router.post("/logout", response_model=MessageResponse)
    async def logout(
        user: Annotated[User, Depends(validate.jwt_token)],
    ) -> MessageResponse:
        """With JWT, logout is handled client-side by discarding the token."""
        await activity_queries.record(
            ActivityAction.LOGOUT,
            EntityType.USER,
            user.id,
            "تسجيل خروج",
            user.id,
        )
        LOGGER.info("User %s logged out", user.username)
        return MessageResponse(message="تم تسجيل الخروج بنجاح")

    @router.get("/session", response_model=UserPayload)
    def get_session(
        user: Annotated[User, Depends(validate.jwt_token)],
    ) -> UserPayload:
        return user_response(user)

    @router.patch("/account/password", response_model=MessageResponse)
    async def change_password_route(
        request: PasswordChangeRequest,
        user: Annotated[User, Depends(validate.jwt_token)],
    ) -> MessageResponse:
        return await _change_password(user_queries, request.new_password, user)

    return router
