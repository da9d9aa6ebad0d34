from __future__ import annotations

import datetime as dt
from enum import StrEnum

from pydantic import BaseModel, Field


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class ProjectInput(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    start_date: dt.date
    status: ProjectStatus = ProjectStatus.ACTIVE
    progress: int = Field(default=0, ge=0, le=100)


class Project(ProjectInput):
    id: int
    created_by: int


class TransactionInput(BaseModel):
    date: dt.date
    amount: float = Field(gt=0)
    type: TransactionType
    description: str = Field(min_length=1)
    project_id: int | None = None


class Transaction(TransactionInput):
    id: int
    created_by: int


class DashboardSummary(BaseModel):
    total_income: float
    total_expenses: float
    net_profit: float
    active_projects: int
    recent_transactions: list[Transaction]
