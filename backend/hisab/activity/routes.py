"""Activity log routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from hisab.access import AccessRequirement
from hisab.auth import Validate
from hisab.common import Permission, User

from .models import ActivityLog, EntityType
from .queries import ActivityQueries

VIEW_ACTIVITY_LOGS = AccessRequirement(permission=Permission.VIEW_ACTIVITY_LOGS)


def configure_activity_router(
    router: APIRouter,
    validate: Validate,
    activity_queries: ActivityQueries,
) -> APIRouter:
    """Configure the activity log router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance for authentication and authorization
    :param activity_queries: Repository for the activity log
    :return: The configured APIRouter
    """

    @router.get("", response_model=list[ActivityLog])
    async def list_activity(
        _: Annotated[User, Depends(validate.requires(VIEW_ACTIVITY_LOGS))],
        user_id: Annotated[int | None, Query()] = None,
        entity_type: Annotated[EntityType | None, Query()] = None,
    ) -> list[ActivityLog]:
        return await activity_queries.list_activity(user_id, entity_type)

    return router
