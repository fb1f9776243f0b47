"""Aggregation package: pure summaries over the ledger collections."""

from finance_tracker.aggregation.engine import (
    budget_status,
    cash_flow_stats,
    category_totals,
    dashboard_summary,
    month_key,
    monthly_series,
    portfolio_summary,
    project_rollup,
    project_spent,
    recent_transactions,
    rollup_projects,
    savings_rate,
    sort_for_display,
    total_amount,
    trailing_months,
)

__all__ = [
    "budget_status",
    "cash_flow_stats",
    "category_totals",
    "dashboard_summary",
    "month_key",
    "monthly_series",
    "portfolio_summary",
    "project_rollup",
    "project_spent",
    "recent_transactions",
    "rollup_projects",
    "savings_rate",
    "sort_for_display",
    "total_amount",
    "trailing_months",
]
