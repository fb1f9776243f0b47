"""
Dashboard Controller

Runs API calls on behalf of the dashboard and applies their results to
the ClientStateCache. Each call moves the cache through
loading -> succeeded | failed; on failure the cache keeps a single error
string and no partial results are applied.
"""

from typing import Any, Callable, Optional, TypeVar

import structlog

from finance_tracker.client.api_client import ApiError, FinanceApiClient
from finance_tracker.client.cache import ClientStateCache
from finance_tracker.models.entities import (
    Expense,
    Income,
    ProjectExpense,
    ProjectView,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DashboardController:

    def __init__(self, api: FinanceApiClient, cache: Optional[ClientStateCache] = None):
        self.api = api
        self.cache = cache or ClientStateCache()

    def _run(
        self,
        action: str,
        call: Callable[[], T],
        apply: Callable[[T], None],
    ) -> Optional[T]:
        self.cache.mark_loading()
        try:
            result = call()
        except ApiError as e:
            logger.warning("dashboard_action_failed", action=action, status=e.status_code, error=e.message)
            self.cache.mark_failed(e.message)
            return None
        apply(result)
        self.cache.mark_succeeded()
        return result

    # Fetches

    def load_dashboard(self) -> bool:
        """Fetch expenses and income together; either both apply or neither."""
        def call():
            return self.api.list_expenses(), self.api.list_income()

        def apply(result):
            expenses, income = result
            self.cache.set_expenses(expenses)
            self.cache.set_income(income)

        return self._run("load_dashboard", call, apply) is not None

    def load_projects(self) -> bool:
        return self._run(
            "load_projects", self.api.list_projects, self.cache.set_projects
        ) is not None

    def load_project_expenses(self, project_id: str) -> Optional[list[ProjectExpense]]:
        return self._run(
            "load_project_expenses",
            lambda: self.api.list_project_expenses(project_id),
            self.cache.merge_project_expenses,
        )

    # Mutations

    def add_expense(self, payload: dict[str, Any]) -> Optional[Expense]:
        return self._run(
            "add_expense",
            lambda: self.api.create_expense(payload),
            self.cache.add_expense,
        )

    def add_income(self, payload: dict[str, Any]) -> Optional[Income]:
        return self._run(
            "add_income",
            lambda: self.api.create_income(payload),
            self.cache.add_income,
        )

    def create_project(self, payload: dict[str, Any]) -> Optional[ProjectView]:
        return self._run(
            "create_project",
            lambda: self.api.create_project(payload),
            self.cache.add_project,
        )

    def update_project(self, project_id: str, patch: dict[str, Any]) -> Optional[ProjectView]:
        return self._run(
            "update_project",
            lambda: self.api.update_project(project_id, patch),
            self.cache.replace_project,
        )

    def delete_project(self, project_id: str) -> Optional[str]:
        return self._run(
            "delete_project",
            lambda: self.api.delete_project(project_id),
            self.cache.remove_project,
        )

    def add_project_expense(
        self,
        project_id: str,
        payload: dict[str, Any],
    ) -> Optional[ProjectExpense]:
        return self._run(
            "add_project_expense",
            lambda: self.api.add_project_expense(project_id, payload),
            self.cache.add_project_expense,
        )
