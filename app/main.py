"""
Streamlit Frontend for Finance Tracker

The dashboard people use day to day: record expenses and income, track
project budgets, and read the summaries.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every figure comes from the aggregation engine, never from the page
3. Clear error messages in simple language
4. Visual feedback for all operations

The page talks to the API through DashboardController, which keeps the
last fetched collections in a ClientStateCache held in session state.
"""

from datetime import date

import streamlit as st

from finance_tracker.aggregation import (
    cash_flow_stats,
    category_totals,
    dashboard_summary,
    monthly_series,
    portfolio_summary,
    recent_transactions,
    rollup_projects,
    sort_for_display,
)
from finance_tracker.audit import configure_logging
from finance_tracker.client import (
    ClientStateCache,
    DashboardController,
    FetchStatus,
    FinanceApiClient,
)
from finance_tracker.config import get_settings
from finance_tracker.models import BudgetStatus, TransactionType


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_COLORS = {
    BudgetStatus.HEALTHY: "🟢",
    BudgetStatus.WARNING: "🟡",
    BudgetStatus.CRITICAL: "🔴",
}


def get_controller() -> DashboardController:
    """Get or create the controller for this browser session."""
    if "controller" not in st.session_state:
        settings = get_settings()
        configure_logging(settings.app.log_level, json_output=False)
        api = FinanceApiClient(
            base_url=settings.api.base_url,
            timeout=settings.api.timeout_seconds,
        )
        st.session_state["controller"] = DashboardController(api, ClientStateCache())
    return st.session_state["controller"]


def money(amount: float) -> str:
    return f"{get_settings().app.currency} {amount:,.2f}"


def show_error(cache: ClientStateCache) -> None:
    if cache.status == FetchStatus.FAILED and cache.error:
        st.error(f"❌ {cache.error}")


def main():
    """Main application entry point."""
    controller = get_controller()

    # Sidebar navigation
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "📁 Projects", "⚙️ Settings"],
        index=0,
    )

    if st.sidebar.button("🔄 Refresh"):
        st.session_state.pop("loaded", None)

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(controller)
    elif page == "📁 Projects":
        render_projects_page(controller)
    elif page == "⚙️ Settings":
        render_settings_page(controller)


def ensure_loaded(controller: DashboardController) -> bool:
    """Fetch everything once per session (or after Refresh)."""
    if st.session_state.get("loaded"):
        return True
    with st.spinner("Loading your data..."):
        ok = controller.load_dashboard() and controller.load_projects()
    if ok:
        st.session_state["loaded"] = True
    return ok


# =============================================================================
# Dashboard
# =============================================================================

def render_dashboard_page(controller: DashboardController):
    st.title("📊 Dashboard")
    settings = get_settings().app
    cache = controller.cache

    if not ensure_loaded(controller):
        show_error(cache)
        return

    summary = dashboard_summary(cache.expenses, settings.monthly_budget)
    col1, col2, col3 = st.columns(3)
    col1.metric("Budget", money(summary.budget))
    col2.metric("Total Spent", money(summary.total_spent))
    col3.metric("Remaining", money(summary.remaining_balance))

    st.markdown("---")
    form_col1, form_col2 = st.columns(2)
    with form_col1:
        render_expense_form(controller)
    with form_col2:
        render_income_form(controller)
    show_error(cache)

    st.markdown("---")
    st.subheader("🧾 Recent Transactions")
    transactions = recent_transactions(
        cache.expenses, cache.income, limit=settings.recent_transactions_limit
    )
    if not transactions:
        st.info("No transactions yet. Add an expense or income above.")
    for tx in transactions:
        sign = "+" if tx.type == TransactionType.INCOME else "-"
        st.markdown(
            f"**{tx.description}** · {tx.date.strftime('%d %b %Y')} · "
            f"{sign}{money(tx.amount)}"
        )

    st.markdown("---")
    chart_col1, chart_col2 = st.columns(2)
    with chart_col1:
        st.subheader("🥧 Spending by Category")
        totals = category_totals(cache.expenses)
        if totals:
            st.bar_chart(
                [{"Category": t.label, "Amount": t.amount} for t in totals],
                x="Category",
                y="Amount",
            )
            for t in totals:
                st.caption(f"{t.label}: {money(t.amount)} ({t.percentage:.1f}%)")
        else:
            st.info("No expenses recorded yet.")

    with chart_col2:
        st.subheader("📈 Monthly Trends")
        series = monthly_series(cache.expenses, cache.income, months=settings.trend_months)
        st.line_chart(
            [{"Month": b.label, "Expenses": b.expenses, "Income": b.income} for b in series],
            x="Month",
            y=["Expenses", "Income"],
        )

    st.markdown("---")
    st.subheader("⚖️ Expenses vs Income")
    comparison = monthly_series(cache.expenses, cache.income, months=settings.comparison_months)
    st.bar_chart(
        [{"Month": b.label, "Expenses": b.expenses, "Income": b.income} for b in comparison],
        x="Month",
        y=["Expenses", "Income"],
    )
    stats = cash_flow_stats(cache.expenses, cache.income, months=settings.comparison_months)
    s1, s2, s3, s4 = st.columns(4)
    s1.metric("Total Income", money(stats.total_income))
    s2.metric("Total Expenses", money(stats.total_expenses))
    s3.metric("Avg Monthly Expenses", money(stats.avg_expenses))
    s4.metric("Savings Rate", f"{stats.savings_rate:.1f}%")


def render_expense_form(controller: DashboardController):
    settings = get_settings().app
    projects = controller.cache.projects
    with st.form("expense_form", clear_on_submit=True):
        st.subheader("➖ Add Expense")
        amount = st.number_input("Amount", min_value=0.0, step=1.0, key="expense_amount")
        category = st.selectbox("Category", settings.expense_categories_list)
        project = st.selectbox(
            "Project",
            options=projects,
            format_func=lambda p: p.name,
        )
        note = st.text_input("Note (optional)", key="expense_note")
        when = st.date_input("Date", value=date.today(), key="expense_date")
        submitted = st.form_submit_button("Add Expense")

    if submitted:
        if project is None:
            st.warning("⚠️ Create a project first - every expense belongs to one.")
            return
        expense = controller.add_expense({
            "amount": amount,
            "category": category,
            "projectId": project.id,
            "note": note,
            "date": when.isoformat(),
        })
        if expense:
            st.success("✅ Expense added")


def render_income_form(controller: DashboardController):
    settings = get_settings().app
    with st.form("income_form", clear_on_submit=True):
        st.subheader("➕ Add Income")
        amount = st.number_input("Amount", min_value=0.0, step=1.0, key="income_amount")
        source = st.selectbox("Source", settings.income_sources_list)
        note = st.text_input("Note (optional)", key="income_note")
        when = st.date_input("Date", value=date.today(), key="income_date")
        submitted = st.form_submit_button("Add Income")

    if submitted:
        income = controller.add_income({
            "amount": amount,
            "source": source,
            "note": note,
            "date": when.isoformat(),
        })
        if income:
            st.success("✅ Income added")


# =============================================================================
# Projects
# =============================================================================

def render_projects_page(controller: DashboardController):
    st.title("📁 Projects")
    cache = controller.cache

    if not ensure_loaded(controller):
        show_error(cache)
        return

    rollups = sort_for_display(rollup_projects(cache.projects))
    portfolio = portfolio_summary(rollups)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Budget", money(portfolio.total_budget))
    col2.metric("Total Spent", money(portfolio.total_spent))
    col3.metric("Remaining", money(portfolio.total_remaining))
    col4.metric("Active / Completed", f"{portfolio.active_projects} / {portfolio.completed_projects}")

    with st.expander("➕ New Project"):
        with st.form("project_form", clear_on_submit=True):
            name = st.text_input("Name")
            budget = st.number_input("Budget", min_value=0.0, step=100.0)
            description = st.text_area("Description (optional)")
            if st.form_submit_button("Create Project"):
                if controller.create_project(
                    {"name": name, "budget": budget, "description": description}
                ):
                    st.success("✅ Project created")
                    st.rerun()

    show_error(cache)
    st.markdown("---")

    if not rollups:
        st.info("📋 No projects yet. Create your first one above.")

    for rollup in rollups:
        icon = STATUS_COLORS[rollup.status]
        st.markdown(f"### {icon} {rollup.name}")
        st.progress(rollup.percentage_used / 100)
        st.caption(
            f"{money(rollup.spent)} of {money(rollup.budget)} spent · "
            f"{money(rollup.remaining)} left"
            + (f" · over budget by {money(-rollup.balance)}" if rollup.is_over_budget else "")
        )
        render_project_detail(controller, rollup.project_id)


def render_project_detail(controller: DashboardController, project_id: str):
    project = controller.cache.get_project(project_id)
    if project is None:
        return

    with st.expander("Details"):
        if st.button("Load expenses", key=f"load_{project_id}"):
            controller.load_project_expenses(project_id)
        for row in controller.cache.expenses_for_project(project_id):
            label = f" ({row.category})" if row.category else ""
            st.markdown(f"- {row.description}{label}: {money(row.amount)}")

        with st.form(f"pe_form_{project_id}", clear_on_submit=True):
            st.markdown("**Add project expense**")
            amount = st.number_input("Amount", min_value=0.0, step=1.0, key=f"pe_amount_{project_id}")
            description = st.text_input("Description", key=f"pe_desc_{project_id}")
            category = st.text_input("Category (optional)", key=f"pe_cat_{project_id}")
            if st.form_submit_button("Add"):
                if controller.add_project_expense(
                    project_id,
                    {"amount": amount, "description": description, "category": category},
                ):
                    st.rerun()

        with st.form(f"edit_form_{project_id}"):
            st.markdown("**Edit project**")
            name = st.text_input("Name", value=project.name, key=f"edit_name_{project_id}")
            budget = st.number_input(
                "Budget", min_value=0.0, value=float(project.budget), key=f"edit_budget_{project_id}"
            )
            description = st.text_area(
                "Description", value=project.description, key=f"edit_desc_{project_id}"
            )
            if st.form_submit_button("Save changes"):
                if controller.update_project(
                    project_id,
                    {"name": name, "budget": budget, "description": description},
                ):
                    st.rerun()

        if st.button("🗑️ Delete project", key=f"delete_{project_id}"):
            if controller.delete_project(project_id):
                st.rerun()


# =============================================================================
# Settings
# =============================================================================

def render_settings_page(controller: DashboardController):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from finance_tracker.client import ApiError
    from finance_tracker.config import validate_all_settings

    try:
        health = controller.api.health()
        st.success(
            f"✅ API - {health['status']} "
            f"({health['environment']}, storage: {health['storage']})"
        )
    except ApiError as e:
        st.error(f"❌ API - {e.message}")

    status = validate_all_settings()
    sections = [
        ("Application", "app"),
        ("API", "api"),
        ("Storage", "storage"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]
    for name, key in sections:
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
