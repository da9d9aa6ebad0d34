"""User administration routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from hisab.access import AccessRequirement
from hisab.activity import ActivityAction, ActivityQueries, EntityType
from hisab.common import DEFAULT_ROLE_PERMISSIONS, Permission, User, UserPayload

from .models import (
    MessageResponse,
    UserCreateRequest,
    UserUpdateRequest,
    user_response,
)
from .queries import UserQueries
from .validation import Validate

LOGGER = logging.getLogger(__name__)

VIEW_USERS = AccessRequirement(permission=Permission.VIEW_USERS)
MANAGE_USERS = AccessRequirement(permission=Permission.MANAGE_USERS)

USER_NOT_FOUND = "المستخدم غير موجود"


def _extra_permissions(
    request: UserCreateRequest | UserUpdateRequest,
) -> list[Permission]:
    """Keep only the grants the role does not already include."""
    defaults = DEFAULT_ROLE_PERMISSIONS[request.role]
    return [p for p in request.permissions if p not in defaults]


async def _create_user(
    user_queries: UserQueries,
    request: UserCreateRequest,
) -> UserPayload:
    error = await user_queries.create_account(
        request.username,
        request.password,
        request.name,
        request.role,
        _extra_permissions(request),
    )
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    created = await user_queries.get_user(request.username)
    if created is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="خطأ في إنشاء المستخدم",
        )
    return user_response(created)


async def _update_user(
    user_queries: UserQueries,
    user_id: int,
    request: UserUpdateRequest,
) -> UserPayload:
    updated = await user_queries.update_account(
        user_id,
        request.name,
        request.role,
        _extra_permissions(request),
    )
    user = await user_queries.get_user_by_id(user_id) if updated else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=USER_NOT_FOUND,
        )
    return user_response(user)


async def _delete_user(
    user_queries: UserQueries,
    user_id: int,
    admin: User,
) -> User:
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="لا يمكنك حذف حسابك الخاص",
        )
    user = await user_queries.get_user_by_id(user_id)
    if user is None or not await user_queries.delete_account(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=USER_NOT_FOUND,
        )
    return user


def configure_user_router(
    router: APIRouter,
    validate: Validate,
    activity_queries: ActivityQueries,
) -> APIRouter:
    """Configure the user administration router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance for authentication and authorization
    :param activity_queries: Repository recording every account change
    :return: The configured APIRouter
    """
    user_queries = validate.user_queries

    @router.get("", response_model=list[UserPayload])
    async def list_users(
        _: Annotated[User, Depends(validate.requires(VIEW_USERS))],
    ) -> list[UserPayload]:
        return [user_response(user) for user in await user_queries.list_users()]

    @router.post("", response_model=UserPayload, status_code=status.HTTP_201_CREATED)
    async def create_user(
        request: UserCreateRequest,
        admin: Annotated[User, Depends(validate.requires(MANAGE_USERS))],
    ) -> UserPayload:
        created = await _create_user(user_queries, request)
        await activity_queries.record(
            ActivityAction.CREATE,
            EntityType.USER,
            created.id,
            f"إضافة مستخدم جديد: {created.name}",
            admin.id,
        )
        LOGGER.info("User %s created account %s", admin.username, created.username)
        return created

    @router.put("/{user_id}", response_model=UserPayload)
    async def update_user(
        user_id: int,
        request: UserUpdateRequest,
        admin: Annotated[User, Depends(validate.requires(MANAGE_USERS))],
    ) -> UserPayload:
        updated = await _update_user(user_queries, user_id, request)
        await activity_queries.record(
            ActivityAction.UPDATE,
            EntityType.USER,
            user_id,
            f"تحديث بيانات المستخدم: {updated.name}",
            admin.id,
        )
        return updated

    @router.delete("/{user_id}", response_model=MessageResponse)
    async def delete_user(
        user_id: int,
        admin: Annotated[User, Depends(validate.requires(MANAGE_USERS))],
    ) -> MessageResponse:
        deleted = await _delete_user(user_queries, user_id, admin)
        await activity_queries.record(
            ActivityAction.DELETE,
            EntityType.USER,
            user_id,
            f"حذف المستخدم: {deleted.name}",
            admin.id,
        )
        return MessageResponse(message="تم حذف المستخدم بنجاح")

    return router
