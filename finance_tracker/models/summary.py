"""
Summary Models

Output shapes of the aggregation engine. Nothing here is persisted;
every figure is recomputed from the underlying collections.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BudgetStatus(str, Enum):
    """Progress-bar band for a project's budget usage."""
    HEALTHY = "healthy"    # under 70%
    WARNING = "warning"    # 70% to under 90%
    CRITICAL = "critical"  # 90% and above


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class SummaryModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class CategoryTotal(SummaryModel):
    """Spending in one category and its share of the total."""
    label: str
    amount: float
    percentage: float


class MonthlyBucket(SummaryModel):
    """One calendar month of activity. Empty months are zero, not absent."""
    key: str = Field(description="YYYY-MM")
    label: str = Field(description="Short month label, e.g. 'Jan 2025'")
    expenses: float = 0.0
    income: float = 0.0

    @property
    def net(self) -> float:
        return self.income - self.expenses


class ProjectRollup(SummaryModel):
    """
    Spent-vs-budget figures for one project.

    remaining and percentage_used are clamped for display;
    balance and usage_percentage keep the real values so the
    over-budget state stays visible.
    """
    project_id: str
    name: str
    budget: float
    spent: float
    remaining: float = Field(ge=0)
    balance: float = Field(description="budget - spent, negative when over budget")
    percentage_used: float = Field(ge=0, le=100)
    usage_percentage: Optional[float] = Field(
        default=None,
        description="Unclamped spent/budget in percent; None when the budget is 0 but money was spent"
    )
    is_over_budget: bool
    is_complete: bool
    status: BudgetStatus
    created_at: datetime


class PortfolioSummary(SummaryModel):
    """Totals across every project."""
    total_budget: float = 0.0
    total_spent: float = 0.0
    total_remaining: float = Field(
        default=0.0,
        description="Signed: negative when the portfolio is over budget"
    )
    active_projects: int = 0
    completed_projects: int = 0


class CashFlowStats(SummaryModel):
    """Income against expenses over a trailing window."""
    months: int
    total_income: float = 0.0
    total_expenses: float = 0.0
    avg_income: float = 0.0
    avg_expenses: float = 0.0
    savings_rate: float = 0.0


class DashboardSummary(SummaryModel):
    """Headline cards: budget, spent, and what is left."""
    budget: float
    total_spent: float
    remaining_balance: float


class Transaction(SummaryModel):
    """An expense or income entry in the merged recent-activity list."""
    id: str
    type: TransactionType
    amount: float
    description: str
    date: datetime
