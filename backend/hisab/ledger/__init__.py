"""Projects, transactions and the dashboard summary."""

from .models import (
    DashboardSummary,
    Project,
    ProjectInput,
    ProjectStatus,
    Transaction,
    TransactionInput,
    TransactionType,
)
from .queries import LedgerQueries
from .routes import (
    configure_dashboard_router,
    configure_project_router,
    configure_transaction_router,
)

__all__ = [
    "DashboardSummary",
    "LedgerQueries",
    "Project",
    "ProjectInput",
    "ProjectStatus",
    "Transaction",
    "TransactionInput",
    "TransactionType",
    "configure_dashboard_router",
    "configure_project_router",
    "configure_transaction_router",
]
