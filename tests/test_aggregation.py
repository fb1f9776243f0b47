"""Tests for the aggregation engine."""

from datetime import datetime, timedelta, timezone

import pytest

from finance_tracker.aggregation import (
    budget_status,
    cash_flow_stats,
    category_totals,
    dashboard_summary,
    monthly_series,
    portfolio_summary,
    project_rollup,
    recent_transactions,
    rollup_projects,
    savings_rate,
    sort_for_display,
    total_amount,
    trailing_months,
)
from finance_tracker.models import BudgetStatus, ProjectView, TransactionType

from factories import (
    NOW,
    make_expense,
    make_income,
    make_project,
    make_project_expense,
)


def utc(year, month, day=1):
    return datetime(year, month, day, 12, tzinfo=timezone.utc)


class TestTotals:
    """Tests for totals and category grouping."""

    def test_empty_total_is_zero(self):
        """Test an empty collection sums to 0."""
        assert total_amount([]) == 0.0

    def test_total_amount(self):
        """Test amounts are summed."""
        assert total_amount([make_expense(10), make_expense(5.5)]) == 15.5

    def test_category_totals_empty(self):
        """Test no expenses gives no categories."""
        assert category_totals([]) == []

    def test_category_totals_grouped_and_sorted(self):
        """Test grouping by category, largest first."""
        totals = category_totals([
            make_expense(10, "Bills"),
            make_expense(30, "Groceries"),
            make_expense(20, "Bills"),
            make_expense(40, "Transport"),
        ])
        assert [(t.label, t.amount) for t in totals] == [
            ("Transport", 40),
            ("Bills", 30),
            ("Groceries", 30),
        ]
        assert totals[0].percentage == pytest.approx(40.0)

    def test_category_percentages_sum_to_100(self):
        """Test the shares add up."""
        totals = category_totals([
            make_expense(1, "A"),
            make_expense(1, "B"),
            make_expense(1, "C"),
        ])
        assert sum(t.percentage for t in totals) == pytest.approx(100.0)

    def test_category_percentage_zero_when_nothing_spent(self):
        """Test zero totals do not divide by zero."""
        totals = category_totals([make_expense(0, "Bills")])
        assert totals[0].percentage == 0.0

    def test_refund_category_goes_negative(self):
        """Test a negative expense lowers its category and the total."""
        totals = category_totals([
            make_expense(100, "Bills"),
            make_expense(-20, "Refunds"),
        ])
        assert [(t.label, t.amount) for t in totals] == [("Bills", 100), ("Refunds", -20)]
        assert totals[1].percentage == pytest.approx(-25.0)


class TestMonthlySeries:
    """Tests for monthly bucketing."""

    def test_trailing_months_oldest_first(self):
        """Test the window ends at the current month."""
        assert trailing_months(3, NOW) == [(2025, 4), (2025, 5), (2025, 6)]

    def test_trailing_months_crosses_year(self):
        """Test the window wraps into the previous year."""
        assert trailing_months(4, utc(2025, 2, 10)) == [
            (2024, 11), (2024, 12), (2025, 1), (2025, 2)
        ]

    def test_empty_input_has_exactly_n_zero_buckets(self):
        """Test sparse data still yields the full window."""
        buckets = monthly_series([], [], months=6, now=NOW)
        assert len(buckets) == 6
        assert [b.key for b in buckets] == [
            "2025-01", "2025-02", "2025-03", "2025-04", "2025-05", "2025-06"
        ]
        assert all(b.expenses == 0 and b.income == 0 for b in buckets)

    def test_labels(self):
        """Test short month labels."""
        buckets = monthly_series([], [], months=2, now=NOW)
        assert [b.label for b in buckets] == ["May 2025", "Jun 2025"]

    def test_records_bucketed_by_month(self):
        """Test expenses and income land in their month."""
        buckets = monthly_series(
            [make_expense(10, when=utc(2025, 6, 2)), make_expense(5, when=utc(2025, 4, 30))],
            [make_income(100, when=utc(2025, 6, 1))],
            months=3,
            now=NOW,
        )
        by_key = {b.key: b for b in buckets}
        assert by_key["2025-06"].expenses == 10
        assert by_key["2025-06"].income == 100
        assert by_key["2025-06"].net == 90
        assert by_key["2025-04"].expenses == 5
        assert by_key["2025-05"].expenses == 0

    def test_records_outside_window_ignored(self):
        """Test old records do not appear."""
        buckets = monthly_series(
            [make_expense(99, when=utc(2024, 12, 31))],
            [],
            months=3,
            now=NOW,
        )
        assert sum(b.expenses for b in buckets) == 0


class TestProjectRollup:
    """Tests for spent-vs-budget figures."""

    def test_over_budget_scenario(self):
        """Test 300 + 800 against a 1000 budget."""
        project = make_project(budget=1000)
        rows = [
            make_project_expense(project.id, 300),
            make_project_expense(project.id, 800),
        ]
        rollup = project_rollup(project, rows)
        assert rollup.spent == 1100
        assert rollup.remaining == 0
        assert rollup.balance == -100
        assert rollup.percentage_used == 100
        assert rollup.usage_percentage == pytest.approx(110.0)
        assert rollup.is_over_budget is True
        assert rollup.is_complete is True
        assert rollup.status == BudgetStatus.CRITICAL

    def test_only_own_expenses_counted(self):
        """Test other projects' rows are ignored."""
        project = make_project(budget=100)
        other = make_project(budget=100)
        rollup = project_rollup(project, [
            make_project_expense(project.id, 20),
            make_project_expense(other.id, 50),
        ])
        assert rollup.spent == 20
        assert rollup.remaining == 80
        assert rollup.status == BudgetStatus.HEALTHY

    def test_spent_independent_of_insertion_order(self):
        """Test fractional amounts sum the same forwards and backwards."""
        project = make_project(budget=1)
        rows = [make_project_expense(project.id, amount) for amount in (0.1, 0.2, 0.3)]
        forward = project_rollup(project, rows)
        backward = project_rollup(project, list(reversed(rows)))
        assert forward.spent == backward.spent == 0.6
        assert forward.remaining == backward.remaining
        assert forward.balance == backward.balance

    def test_spent_taken_from_view(self):
        """Test a served ProjectView's spent is used when no rows are given."""
        view = ProjectView.from_project(make_project(budget=200), 150)
        rollup = project_rollup(view)
        assert rollup.spent == 150
        assert rollup.percentage_used == pytest.approx(75.0)
        assert rollup.status == BudgetStatus.WARNING

    def test_exactly_on_budget_is_complete_not_over(self):
        """Test spent == budget."""
        project = make_project(budget=100)
        rollup = project_rollup(project, [make_project_expense(project.id, 100)])
        assert rollup.is_complete is True
        assert rollup.is_over_budget is False

    def test_zero_budget_nothing_spent(self):
        """Test 0 of 0 reads as 0% used."""
        rollup = project_rollup(make_project(budget=0), [])
        assert rollup.percentage_used == 0
        assert rollup.usage_percentage == 0
        assert rollup.is_over_budget is False
        assert rollup.is_complete is True

    def test_zero_budget_with_spend(self):
        """Test any spend against a 0 budget is full and over."""
        project = make_project(budget=0)
        rollup = project_rollup(project, [make_project_expense(project.id, 5)])
        assert rollup.percentage_used == 100
        assert rollup.usage_percentage is None
        assert rollup.is_over_budget is True
        assert rollup.balance == -5

    @pytest.mark.parametrize("percentage,expected", [
        (0, BudgetStatus.HEALTHY),
        (69.9, BudgetStatus.HEALTHY),
        (70, BudgetStatus.WARNING),
        (89.9, BudgetStatus.WARNING),
        (90, BudgetStatus.CRITICAL),
        (100, BudgetStatus.CRITICAL),
    ])
    def test_status_bands(self, percentage, expected):
        """Test progress-bar colour bands."""
        assert budget_status(percentage) == expected

    def test_sort_for_display(self):
        """Test incomplete projects first, then newest first."""
        old_open = make_project("old open", 100, created=NOW - timedelta(days=3))
        new_open = make_project("new open", 100, created=NOW - timedelta(days=1))
        done = make_project("done", 10, created=NOW)
        rows = [make_project_expense(done.id, 10)]
        ordered = sort_for_display(rollup_projects([old_open, done, new_open], rows))
        assert [r.name for r in ordered] == ["new open", "old open", "done"]

    def test_portfolio_summary(self):
        """Test totals and active/completed counts."""
        a = make_project(budget=100)
        b = make_project(budget=50)
        rows = [make_project_expense(a.id, 30), make_project_expense(b.id, 80)]
        summary = portfolio_summary(rollup_projects([a, b], rows))
        assert summary.total_budget == 150
        assert summary.total_spent == 110
        assert summary.total_remaining == 40
        assert summary.active_projects == 1
        assert summary.completed_projects == 1

    def test_portfolio_remaining_is_signed(self):
        """Test an over-budget portfolio reports a negative remainder."""
        a = make_project(budget=10)
        summary = portfolio_summary(rollup_projects([a], [make_project_expense(a.id, 25)]))
        assert summary.total_remaining == -15

    def test_portfolio_empty(self):
        """Test no projects gives zeros."""
        summary = portfolio_summary([])
        assert summary.total_budget == 0
        assert summary.active_projects == 0


class TestCashFlow:
    """Tests for savings rate and comparisons."""

    def test_savings_rate_zero_without_income(self):
        """Test savings rate is exactly 0 when there is no income."""
        assert savings_rate(0, 0) == 0
        assert savings_rate(0, 500) == 0

    def test_savings_rate(self):
        """Test the share of income kept."""
        assert savings_rate(1000, 250) == pytest.approx(75.0)

    def test_savings_rate_negative_when_overspending(self):
        """Test spending more than income."""
        assert savings_rate(100, 150) == pytest.approx(-50.0)

    def test_cash_flow_stats(self):
        """Test totals and monthly averages over the window."""
        stats = cash_flow_stats(
            [make_expense(300, when=utc(2025, 6, 1)), make_expense(90, when=utc(2025, 1, 1))],
            [make_income(600, when=utc(2025, 5, 1))],
            months=3,
            now=NOW,
        )
        assert stats.total_expenses == 300
        assert stats.total_income == 600
        assert stats.avg_expenses == pytest.approx(100.0)
        assert stats.avg_income == pytest.approx(200.0)
        assert stats.savings_rate == pytest.approx(50.0)

    def test_cash_flow_stats_empty(self):
        """Test no data gives zeros."""
        stats = cash_flow_stats([], [], months=3, now=NOW)
        assert stats.total_income == 0
        assert stats.savings_rate == 0

    def test_dashboard_summary(self):
        """Test remaining balance against the fixed budget."""
        summary = dashboard_summary([make_expense(500), make_expense(2000)], 2000)
        assert summary.total_spent == 2500
        assert summary.remaining_balance == -500


class TestRecentTransactions:
    """Tests for the merged activity list."""

    def test_merged_newest_first(self):
        """Test expenses and income interleave by date."""
        txs = recent_transactions(
            [make_expense(10, when=utc(2025, 6, 3)), make_expense(20, when=utc(2025, 6, 1))],
            [make_income(100, when=utc(2025, 6, 2))],
        )
        assert [t.amount for t in txs] == [10, 100, 20]
        assert txs[1].type == TransactionType.INCOME

    def test_limit(self):
        """Test only the newest entries are kept."""
        expenses = [make_expense(i, when=utc(2025, 5, i + 1)) for i in range(10)]
        txs = recent_transactions(expenses, [], limit=8)
        assert len(txs) == 8
        assert txs[0].amount == 9

    def test_description_includes_note(self):
        """Test category/source with the note appended."""
        txs = recent_transactions(
            [make_expense(10, "Bills", note="power")],
            [make_income(5, "Gift", when=NOW - timedelta(days=1))],
        )
        assert txs[0].description == "Bills - power"
        assert txs[1].description == "Gift"

    def test_empty(self):
        """Test no data gives no transactions."""
        assert recent_transactions([], []) == []
