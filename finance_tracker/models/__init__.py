"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.entities import (
    EntityKind,
    EntityModel,
    Expense,
    Income,
    Project,
    ProjectExpense,
    ProjectView,
    is_valid_object_id,
    new_object_id,
    utcnow,
)
from finance_tracker.models.payloads import (
    ExpenseCreate,
    IncomeCreate,
    ProjectCreate,
    ProjectExpenseCreate,
    ProjectUpdate,
    ValidationIssue,
)
from finance_tracker.models.summary import (
    BudgetStatus,
    CashFlowStats,
    CategoryTotal,
    DashboardSummary,
    MonthlyBucket,
    PortfolioSummary,
    ProjectRollup,
    Transaction,
    TransactionType,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Stored documents
    "EntityKind",
    "EntityModel",
    "Expense",
    "Income",
    "Project",
    "ProjectExpense",
    "ProjectView",
    "is_valid_object_id",
    "new_object_id",
    "utcnow",
    # Request payloads
    "ExpenseCreate",
    "IncomeCreate",
    "ProjectCreate",
    "ProjectExpenseCreate",
    "ProjectUpdate",
    "ValidationIssue",
    # Summaries
    "BudgetStatus",
    "CashFlowStats",
    "CategoryTotal",
    "DashboardSummary",
    "MonthlyBucket",
    "PortfolioSummary",
    "ProjectRollup",
    "Transaction",
    "TransactionType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
