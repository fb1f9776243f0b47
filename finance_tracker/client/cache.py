"""
Client State Cache

Holds the last-fetched collections and mirrors mutations locally so the
dashboard does not refetch after every write.

DESIGN DECISION: The cache is optimistic and never reconciles. After a
successful write the server's response is patched in:
- fetch          -> replace the collection
- create         -> insert at the front (server lists newest first)
- update         -> replace by id
- delete project -> drop the project and its cached project expenses
- add project expense -> append it and bump the project's spent

Creates are inserted at the front rather than appended, so a cached
collection reads in the same newest-first order as a fresh fetch. The
original dashboard appended and showed new entries at the bottom until
the next reload; that ordering is deliberately not kept.

Another writer working against the same server is not seen until the
next fetch.
"""

from enum import Enum
from typing import Iterable, Optional

from finance_tracker.models.entities import (
    Expense,
    Income,
    ProjectExpense,
    ProjectView,
)


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ClientStateCache:
    """Last known server state plus one status flag and one error string."""

    def __init__(self):
        self.expenses: list[Expense] = []
        self.income: list[Income] = []
        self.projects: list[ProjectView] = []
        self.project_expenses: list[ProjectExpense] = []
        self.status: FetchStatus = FetchStatus.IDLE
        self.error: Optional[str] = None

    # Status

    def mark_loading(self) -> None:
        self.status = FetchStatus.LOADING
        self.error = None

    def mark_succeeded(self) -> None:
        self.status = FetchStatus.SUCCEEDED
        self.error = None

    def mark_failed(self, message: str) -> None:
        self.status = FetchStatus.FAILED
        self.error = message

    # Fetch results

    def set_expenses(self, expenses: Iterable[Expense]) -> None:
        self.expenses = list(expenses)

    def set_income(self, income: Iterable[Income]) -> None:
        self.income = list(income)

    def set_projects(self, projects: Iterable[ProjectView]) -> None:
        self.projects = list(projects)

    def merge_project_expenses(self, rows: Iterable[ProjectExpense]) -> None:
        """Add fetched rows, skipping ids already cached."""
        known = {row.id for row in self.project_expenses}
        for row in rows:
            if row.id not in known:
                self.project_expenses.append(row)
                known.add(row.id)

    # Mutation results

    def add_expense(self, expense: Expense) -> None:
        self.expenses.insert(0, expense)

    def add_income(self, income: Income) -> None:
        self.income.insert(0, income)

    def add_project(self, project: ProjectView) -> None:
        self.projects.insert(0, project)

    def replace_project(self, project: ProjectView) -> None:
        self.projects = [project if p.id == project.id else p for p in self.projects]

    def remove_project(self, project_id: str) -> None:
        self.projects = [p for p in self.projects if p.id != project_id]
        self.project_expenses = [
            row for row in self.project_expenses if row.project_id != project_id
        ]

    def add_project_expense(self, row: ProjectExpense) -> None:
        self.project_expenses.append(row)
        self.projects = [
            p.model_copy(update={"spent": p.spent + row.amount})
            if p.id == row.project_id else p
            for p in self.projects
        ]

    # Lookups

    def get_project(self, project_id: str) -> Optional[ProjectView]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def expenses_for_project(self, project_id: str) -> list[ProjectExpense]:
        return [row for row in self.project_expenses if row.project_id == project_id]
