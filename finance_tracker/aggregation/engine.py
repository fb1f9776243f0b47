"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and stateless.
Every figure on the dashboard is folded from the raw collections on
demand; nothing derived is ever stored. All functions accept empty
collections and return a well-defined zero or empty result.

Records are plain models (Expense, Income, ProjectExpense, Project).
Functions that depend on the calendar take an explicit "now" so tests
can pin the window.
"""

import calendar
import math
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional, Sequence, Union

from finance_tracker.models.entities import (
    Expense,
    Income,
    Project,
    ProjectExpense,
    utcnow,
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


# Progress-bar bands, in percent of budget used
WARNING_THRESHOLD = 70.0
CRITICAL_THRESHOLD = 90.0

AmountRecord = Union[Expense, Income, ProjectExpense]


# =============================================================================
# TOTALS
# =============================================================================

def total_amount(records: Iterable[AmountRecord]) -> float:
    """Sum of amounts; 0.0 for an empty collection. Independent of order."""
    return math.fsum(record.amount for record in records)


def category_totals(expenses: Sequence[Expense]) -> list[CategoryTotal]:
    """
    Group expenses by category.

    Sorted by amount, largest first. Percentages are of the overall
    total and are 0 when nothing was spent.
    """
    grouped: dict[str, list[float]] = defaultdict(list)
    for expense in expenses:
        grouped[expense.category].append(expense.amount)

    total = total_amount(expenses)
    totals = []
    for label, amounts in grouped.items():
        amount = math.fsum(amounts)
        totals.append(CategoryTotal(
            label=label,
            amount=amount,
            percentage=(amount / total * 100) if total else 0.0,
        ))
    totals.sort(key=lambda t: t.amount, reverse=True)
    return totals


# =============================================================================
# MONTHLY SERIES
# =============================================================================

def month_key(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_abbr[month]} {year}"


def trailing_months(count: int, now: Optional[datetime] = None) -> list[tuple[int, int]]:
    """
    The last `count` calendar months as (year, month), oldest first.

    The current month is the last entry.
    """
    now = now or utcnow()
    months = []
    year, month = now.year, now.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def monthly_series(
    expenses: Sequence[Expense],
    income: Sequence[Income],
    months: int = 6,
    now: Optional[datetime] = None,
) -> list[MonthlyBucket]:
    """
    Expenses and income bucketed by calendar month.

    Always exactly `months` buckets; a month with no activity is zero.
    Records outside the window are ignored.
    """
    window = trailing_months(months, now)
    spent: dict[str, list[float]] = {f"{y:04d}-{m:02d}": [] for y, m in window}
    earned: dict[str, list[float]] = {key: [] for key in spent}

    for expense in expenses:
        key = month_key(expense.date)
        if key in spent:
            spent[key].append(expense.amount)
    for entry in income:
        key = month_key(entry.date)
        if key in earned:
            earned[key].append(entry.amount)

    return [
        MonthlyBucket(
            key=f"{y:04d}-{m:02d}",
            label=month_label(y, m),
            expenses=math.fsum(spent[f"{y:04d}-{m:02d}"]),
            income=math.fsum(earned[f"{y:04d}-{m:02d}"]),
        )
        for y, m in window
    ]


# =============================================================================
# PROJECTS
# =============================================================================

def project_spent(project_id: str, project_expenses: Iterable[ProjectExpense]) -> float:
    """Live sum of a project's expenses."""
    return total_amount(pe for pe in project_expenses if pe.project_id == project_id)


def budget_status(percentage_used: float) -> BudgetStatus:
    if percentage_used < WARNING_THRESHOLD:
        return BudgetStatus.HEALTHY
    if percentage_used < CRITICAL_THRESHOLD:
        return BudgetStatus.WARNING
    return BudgetStatus.CRITICAL


def project_rollup(
    project: Project,
    project_expenses: Optional[Iterable[ProjectExpense]] = None,
) -> ProjectRollup:
    """
    Spent-vs-budget figures for one project.

    Without project_expenses the spend already carried by a ProjectView
    is used, as served by the API.

    A zero budget with nothing spent reads as 0% used; a zero budget
    with any spend reads as 100% used and has no finite ratio.
    """
    if project_expenses is None:
        spent = float(getattr(project, "spent", 0.0))
    else:
        spent = project_spent(project.id, project_expenses)
    budget = project.budget

    if budget > 0:
        usage: Optional[float] = spent / budget * 100
        percentage_used = min(usage, 100.0)
    elif spent > 0:
        usage = None
        percentage_used = 100.0
    else:
        usage = 0.0
        percentage_used = 0.0

    return ProjectRollup(
        project_id=project.id,
        name=project.name,
        budget=budget,
        spent=spent,
        remaining=max(0.0, budget - spent),
        balance=budget - spent,
        percentage_used=max(percentage_used, 0.0),
        usage_percentage=usage,
        is_over_budget=spent > budget,
        is_complete=spent >= budget,
        status=budget_status(percentage_used),
        created_at=project.created_at,
    )


def rollup_projects(
    projects: Iterable[Project],
    project_expenses: Optional[Sequence[ProjectExpense]] = None,
) -> list[ProjectRollup]:
    """Roll up every project, in the order given."""
    return [project_rollup(project, project_expenses) for project in projects]


def sort_for_display(rollups: Iterable[ProjectRollup]) -> list[ProjectRollup]:
    """Projects still under budget first, then newest created first."""
    by_newest = sorted(rollups, key=lambda r: r.created_at, reverse=True)
    return sorted(by_newest, key=lambda r: r.is_complete)


def portfolio_summary(rollups: Sequence[ProjectRollup]) -> PortfolioSummary:
    """
    Totals across all projects.

    total_remaining is signed. A project counts as completed once its
    spend reaches its budget.
    """
    total_budget = math.fsum(r.budget for r in rollups)
    total_spent = math.fsum(r.spent for r in rollups)
    return PortfolioSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        active_projects=sum(1 for r in rollups if not r.is_complete),
        completed_projects=sum(1 for r in rollups if r.is_complete),
    )


# =============================================================================
# CASH FLOW
# =============================================================================

def savings_rate(total_income: float, total_expenses: float) -> float:
    """Share of income kept, in percent. Exactly 0 when there is no income."""
    if not total_income:
        return 0.0
    return (total_income - total_expenses) / total_income * 100


def cash_flow_stats(
    expenses: Sequence[Expense],
    income: Sequence[Income],
    months: int = 3,
    now: Optional[datetime] = None,
) -> CashFlowStats:
    """Income against expenses over the trailing window."""
    buckets = monthly_series(expenses, income, months=months, now=now)
    total_income = math.fsum(b.income for b in buckets)
    total_expenses = math.fsum(b.expenses for b in buckets)
    return CashFlowStats(
        months=months,
        total_income=total_income,
        total_expenses=total_expenses,
        avg_income=total_income / months if months else 0.0,
        avg_expenses=total_expenses / months if months else 0.0,
        savings_rate=savings_rate(total_income, total_expenses),
    )


def dashboard_summary(expenses: Sequence[Expense], budget: float) -> DashboardSummary:
    spent = total_amount(expenses)
    return DashboardSummary(
        budget=budget,
        total_spent=spent,
        remaining_balance=budget - spent,
    )


def _describe(label: str, note: Optional[str]) -> str:
    return f"{label} - {note}" if note else label


def recent_transactions(
    expenses: Sequence[Expense],
    income: Sequence[Income],
    limit: int = 8,
) -> list[Transaction]:
    """Expenses and income merged, newest first, capped at `limit`."""
    merged = [
        Transaction(
            id=e.id,
            type=TransactionType.EXPENSE,
            amount=e.amount,
            description=_describe(e.category, e.note),
            date=e.date,
        )
        for e in expenses
    ] + [
        Transaction(
            id=i.id,
            type=TransactionType.INCOME,
            amount=i.amount,
            description=_describe(i.source, i.note),
            date=i.date,
        )
        for i in income
    ]
    merged.sort(key=lambda t: t.date, reverse=True)
    return merged[:max(limit, 0)]
