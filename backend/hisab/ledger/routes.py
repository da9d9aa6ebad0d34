"""Project, transaction and dashboard routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hisab.access import AccessRequirement, is_admin
from hisab.activity import ActivityAction, ActivityQueries, EntityType
from hisab.auth import Validate
from hisab.auth.models import MessageResponse
from hisab.common import Permission, User

from .models import (
    DashboardSummary,
    Project,
    ProjectInput,
    Transaction,
    TransactionInput,
    TransactionType,
)
from .queries import LedgerQueries

LOGGER = logging.getLogger(__name__)

VIEW_PROJECTS = AccessRequirement(permission=Permission.VIEW_PROJECTS)
MANAGE_PROJECTS = AccessRequirement(permission=Permission.MANAGE_PROJECTS)
VIEW_TRANSACTIONS = AccessRequirement(permission=Permission.VIEW_TRANSACTIONS)
MANAGE_TRANSACTIONS = AccessRequirement(permission=Permission.MANAGE_TRANSACTIONS)
VIEW_DASHBOARD = AccessRequirement(permission=Permission.VIEW_DASHBOARD)

PROJECT_NOT_FOUND = "المشروع غير موجود"
TRANSACTION_NOT_FOUND = "المعاملة غير موجودة"
NOT_OWNER = "يمكن فقط لمنشئ السجل أو المدير تعديله أو حذفه"


def _check_owner(user: User, created_by: int) -> None:
    """Only the creator of a record or an admin may change it."""
    if user.id != created_by and not is_admin(user):
        LOGGER.debug("User %s does not own record of %s", user.username, created_by)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_OWNER)


async def _owned_project(
    ledger_queries: LedgerQueries,
    project_id: int,
    user: User,
) -> Project:
    project = await ledger_queries.get_project(project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=PROJECT_NOT_FOUND,
        )
    _check_owner(user, project.created_by)
    return project


async def _owned_transaction(
    ledger_queries: LedgerQueries,
    transaction_id: int,
    user: User,
) -> Transaction:
    transaction = await ledger_queries.get_transaction(transaction_id)
    if transaction is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=TRANSACTION_NOT_FOUND,
        )
    _check_owner(user, transaction.created_by)
    return transaction


async def _check_project_exists(
    ledger_queries: LedgerQueries,
    transaction: TransactionInput,
) -> None:
    if transaction.project_id is None:
        return
    if await ledger_queries.get_project(transaction.project_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=PROJECT_NOT_FOUND,
        )


def configure_project_router(
    router: APIRouter,
    validate: Validate,
    ledger_queries: LedgerQueries,
    activity_queries: ActivityQueries,
) -> APIRouter:
    """Configure the project router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance for authentication and authorization
    :param ledger_queries: Repository for the ledger tables
    :param activity_queries: Repository recording every change
    :return: The configured APIRouter
    """

    @router.get("", response_model=list[Project])
    async def list_projects(
        _: Annotated[User, Depends(validate.requires(VIEW_PROJECTS))],
    ) -> list[Project]:
        return await ledger_queries.list_projects()

    @router.get("/{project_id}", response_model=Project)
    async def get_project(
        project_id: int,
        _: Annotated[User, Depends(validate.requires(VIEW_PROJECTS))],
    ) -> Project:
        project = await ledger_queries.get_project(project_id)
        if project is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=PROJECT_NOT_FOUND,
            )
        return project

    @router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
    async def create_project(
        project: ProjectInput,
        user: Annotated[User, Depends(validate.requires(MANAGE_PROJECTS))],
    ) -> Project:
        created = await ledger_queries.create_project(project, user.id)
        await activity_queries.record(
            ActivityAction.CREATE,
            EntityType.PROJECT,
            created.id,
            f"إضافة مشروع جديد: {created.name}",
            user.id,
        )
        LOGGER.info("User %s created project %s", user.username, created.id)
        return created

    @router.put("/{project_id}", response_model=Project)
    async def update_project(
        project_id: int,
        project: ProjectInput,
        user: Annotated[User, Depends(validate.requires(MANAGE_PROJECTS))],
    ) -> Project:
        existing = await _owned_project(ledger_queries, project_id, user)
        await ledger_queries.update_project(project_id, project)
        await activity_queries.record(
            ActivityAction.UPDATE,
            EntityType.PROJECT,
            project_id,
            f"تحديث مشروع: {project.name}",
            user.id,
        )
        return Project(
            id=project_id,
            created_by=existing.created_by,
            **project.model_dump(),
        )

    @router.delete("/{project_id}", response_model=MessageResponse)
    async def delete_project(
        project_id: int,
        user: Annotated[User, Depends(validate.requires(MANAGE_PROJECTS))],
    ) -> MessageResponse:
        project = await _owned_project(ledger_queries, project_id, user)
        await ledger_queries.delete_project(project_id)
        await activity_queries.record(
            ActivityAction.DELETE,
            EntityType.PROJECT,
            project_id,
            f"حذف مشروع: {project.name}",
            user.id,
        )
        LOGGER.info("User %s deleted project %s", user.username, project_id)
        return MessageResponse(message="تم حذف المشروع بنجاح")

    return router


def configure_transaction_router(
    router: APIRouter,
    validate: Validate,
    ledger_queries: LedgerQueries,
    activity_queries: ActivityQueries,
) -> APIRouter:
    """Configure the transaction router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance for authentication and authorization
    :param ledger_queries: Repository for the ledger tables
    :param activity_queries: Repository recording every change
    :return: The configured APIRouter
    """

    @router.get("", response_model=list[Transaction])
    async def list_transactions(
        _: Annotated[User, Depends(validate.requires(VIEW_TRANSACTIONS))],
        project_id: Annotated[int | None, Query()] = None,
        transaction_type: Annotated[
            TransactionType | None,
            Query(alias="type"),
        ] = None,
    ) -> list[Transaction]:
        return await ledger_queries.list_transactions(project_id, transaction_type)

    @router.post("", response_model=Transaction, status_code=status.HTTP_201_CREATED)
    async def create_transaction(
        transaction: TransactionInput,
        user: Annotated[User, Depends(validate.requires(MANAGE_TRANSACTIONS))],
    ) -> Transaction:
        await _check_project_exists(ledger_queries, transaction)
        created = await ledger_queries.create_transaction(transaction, user.id)
        await activity_queries.record(
            ActivityAction.CREATE,
            EntityType.TRANSACTION,
            created.id,
            f"إضافة معاملة جديدة: {created.description} ({created.type})",
            user.id,
        )
        LOGGER.info("User %s recorded transaction %s", user.username, created.id)
        return created

    @router.put("/{transaction_id}", response_model=Transaction)
    async def update_transaction(
        transaction_id: int,
        transaction: TransactionInput,
        user: Annotated[User, Depends(validate.requires(MANAGE_TRANSACTIONS))],
    ) -> Transaction:
        existing = await _owned_transaction(ledger_queries, transaction_id, user)
        await _check_project_exists(ledger_queries, transaction)
        await ledger_queries.update_transaction(transaction_id, transaction)
        await activity_queries.record(
            ActivityAction.UPDATE,
            EntityType.TRANSACTION,
            transaction_id,
            f"تحديث معاملة: {transaction.description}",
            user.id,
        )
        return Transaction(
            id=transaction_id,
            created_by=existing.created_by,
            **transaction.model_dump(),
        )

    @router.delete("/{transaction_id}", response_model=MessageResponse)
    async def delete_transaction(
        transaction_id: int,
        user: Annotated[User, Depends(validate.requires(MANAGE_TRANSACTIONS))],
    ) -> MessageResponse:
        transaction = await _owned_transaction(ledger_queries, transaction_id, user)
        await ledger_queries.delete_transaction(transaction_id)
        await activity_queries.record(
            ActivityAction.DELETE,
            EntityType.TRANSACTION,
            transaction_id,
            f"حذف معاملة: {transaction.description}",
            user.id,
        )
        LOGGER.info("User %s deleted transaction %s", user.username, transaction_id)
        return MessageResponse(message="تم حذف المعاملة بنجاح")

    return router


def configure_dashboard_router(
    router: APIRouter,
    validate: Validate,
    ledger_queries: LedgerQueries,
) -> APIRouter:
    """Configure the dashboard router."""

    @router.get("", response_model=DashboardSummary)
    async def dashboard(
        _: Annotated[User, Depends(validate.requires(VIEW_DASHBOARD))],
    ) -> DashboardSummary:
        return await ledger_queries.dashboard_summary()

    return router
