"""
Mutation Service

This module holds the request-level flows for every read and write:
1. Validate (identifier first, then payload) before touching the store
2. Create / update / delete through the EntityStore
3. Recompute derived figures (a project's spent) on every read
4. Cascade a project delete to its project expenses

DESIGN DECISION: The service enforces the boundaries:
- No store access with a malformed identifier
- No stored "spent" figure; it is always summed from ProjectExpense rows
- Every mutation and every rejection is audited

There is no transaction around the cascade. If the process dies between
deleting the project and deleting its expenses, the orphaned rows stay
behind; they no longer count toward anything because no project reads
them.
"""

from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finance_tracker.aggregation.engine import project_spent
from finance_tracker.audit.logger import AuditLogger
from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.models.entities import (
    EntityKind,
    Expense,
    Income,
    Project,
    ProjectExpense,
    ProjectView,
    utcnow,
)
from finance_tracker.models.payloads import (
    ExpenseCreate,
    IncomeCreate,
    ProjectCreate,
    ProjectExpenseCreate,
    ProjectUpdate,
)
from finance_tracker.services.storage import EntityStore, NotFoundError
from finance_tracker.validation.validator import (
    ModelT,
    ValidationError,
    require_object_id,
    validate_payload,
)


logger = structlog.get_logger(__name__)


class DeletedProject(BaseModel):
    """Outcome of a project delete."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    deleted_id: str
    cascaded_expenses: int = Field(
        default=0,
        description="Number of project expenses removed with the project"
    )


class MutationService:
    """
    All reads and writes the HTTP layer exposes.

    Every method accepts an optional correlation id so the audit events
    of one request can be traced together.
    """

    def __init__(
        self,
        store: EntityStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # =========================================================================
    # Boundary helpers
    # =========================================================================

    async def _audit(self, event: AuditEvent) -> None:
        await self._audit_logger.log(event)

    async def _check_id(
        self,
        value: Any,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> str:
        try:
            return require_object_id(value)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                operation, e.issues_as_dicts(), correlation_id
            )
            raise

    async def _validate(
        self,
        model: type[ModelT],
        data: Any,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> ModelT:
        try:
            return validate_payload(model, data)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                operation, e.issues_as_dicts(), correlation_id
            )
            raise

    async def _find_project(
        self,
        project_id: str,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> Project:
        try:
            return await self._store.find_by_id(EntityKind.PROJECT, project_id)
        except NotFoundError:
            await self._audit_logger.log_not_found(
                "project", project_id, operation, correlation_id
            )
            raise

    async def _spent(self, project_id: str) -> float:
        rows = await self._store.list_where(
            EntityKind.PROJECT_EXPENSE, "project_id", project_id
        )
        return project_spent(project_id, rows)

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_expenses(self) -> list[Expense]:
        """All expenses, newest date first."""
        return await self._store.list_all(EntityKind.EXPENSE)

    async def list_income(self) -> list[Income]:
        """All income entries, newest date first."""
        return await self._store.list_all(EntityKind.INCOME)

    async def list_projects(self) -> list[ProjectView]:
        """All projects, newest first, each with its spent recomputed."""
        projects = await self._store.list_all(EntityKind.PROJECT)
        rows = await self._store.list_all(EntityKind.PROJECT_EXPENSE)
        return [
            ProjectView.from_project(project, project_spent(project.id, rows))
            for project in projects
        ]

    async def list_project_expenses(
        self,
        project_id: Any,
        correlation_id: Optional[UUID] = None,
    ) -> list[ProjectExpense]:
        """
        Expenses booked against one project, newest first.

        Raises:
            ValidationError: malformed project id
            NotFoundError: no such project
        """
        operation = "list_project_expenses"
        project_id = await self._check_id(project_id, operation, correlation_id)
        await self._find_project(project_id, operation, correlation_id)
        return await self._store.list_where(
            EntityKind.PROJECT_EXPENSE, "project_id", project_id
        )

    # =========================================================================
    # Creates
    # =========================================================================

    async def create_project(
        self,
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> ProjectView:
        payload = await self._validate(ProjectCreate, data, "create_project", correlation_id)
        now = utcnow()
        project = await self._store.create(Project(
            name=payload.name,
            budget=payload.budget,
            description=payload.description or "",
            created_at=now,
            updated_at=now,
        ))
        await self._audit(AuditEventBuilder.project_created(
            project.id, project.name, project.budget, correlation_id
        ))
        logger.info("project_created", project_id=project.id)
        return ProjectView.from_project(project, 0.0)

    async def create_expense(
        self,
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Record an expense.

        The referenced project only has to be a well-formed id; it is not
        looked up.
        """
        payload = await self._validate(ExpenseCreate, data, "create_expense", correlation_id)
        now = utcnow()
        expense = await self._store.create(Expense(
            amount=payload.amount,
            category=payload.category,
            note=payload.note,
            project_id=payload.project_id,
            date=payload.date or now,
            created_at=now,
        ))
        await self._audit(AuditEventBuilder.expense_created(
            expense.id, expense.category, expense.amount, expense.project_id, correlation_id
        ))
        return expense

    async def create_income(
        self,
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Income:
        payload = await self._validate(IncomeCreate, data, "create_income", correlation_id)
        now = utcnow()
        income = await self._store.create(Income(
            amount=payload.amount,
            source=payload.source,
            note=payload.note,
            date=payload.date or now,
            created_at=now,
        ))
        await self._audit(AuditEventBuilder.income_created(
            income.id, income.source, income.amount, correlation_id
        ))
        return income

    async def add_project_expense(
        self,
        project_id: Any,
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> ProjectExpense:
        """
        Book an expense against a project.

        The project's spent grows by the amount on the next read.

        Raises:
            ValidationError: malformed id (checked first) or invalid payload
            NotFoundError: no such project
        """
        operation = "add_project_expense"
        project_id = await self._check_id(project_id, operation, correlation_id)
        payload = await self._validate(ProjectExpenseCreate, data, operation, correlation_id)
        await self._find_project(project_id, operation, correlation_id)

        now = utcnow()
        row = await self._store.create(ProjectExpense(
            project_id=project_id,
            amount=payload.amount,
            description=payload.description,
            category=payload.category or "",
            date=payload.date or now,
            created_at=now,
        ))
        await self._audit(AuditEventBuilder.project_expense_added(
            row.id, project_id, row.amount, correlation_id
        ))
        return row

    # =========================================================================
    # Project update / delete
    # =========================================================================

    async def update_project(
        self,
        project_id: Any,
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> ProjectView:
        """
        Merge a partial update into a project and stamp updatedAt.

        spent cannot be patched; the returned view carries a freshly
        recomputed value.
        """
        operation = "update_project"
        project_id = await self._check_id(project_id, operation, correlation_id)
        payload = await self._validate(ProjectUpdate, data, operation, correlation_id)
        patch = payload.to_patch()
        fields = sorted(patch)
        patch["updated_at"] = utcnow()

        try:
            project = await self._store.update(EntityKind.PROJECT, project_id, patch)
        except NotFoundError:
            await self._audit_logger.log_not_found(
                "project", project_id, operation, correlation_id
            )
            raise
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                operation, e.issues_as_dicts(), correlation_id
            )
            raise

        await self._audit(AuditEventBuilder.project_updated(
            project_id, fields, correlation_id
        ))
        return ProjectView.from_project(project, await self._spent(project_id))

    async def delete_project(
        self,
        project_id: Any,
        correlation_id: Optional[UUID] = None,
    ) -> DeletedProject:
        """
        Delete a project, then every project expense that references it.

        Expenses (the global kind) that point at the project are left as
        they are.
        """
        operation = "delete_project"
        project_id = await self._check_id(project_id, operation, correlation_id)

        try:
            await self._store.delete(EntityKind.PROJECT, project_id)
        except NotFoundError:
            await self._audit_logger.log_not_found(
                "project", project_id, operation, correlation_id
            )
            raise
        await self._audit(AuditEventBuilder.project_deleted(project_id, correlation_id))

        cascaded = await self._store.delete_where(
            EntityKind.PROJECT_EXPENSE, "project_id", project_id
        )
        await self._audit(AuditEventBuilder.project_expenses_cascaded(
            project_id, cascaded, correlation_id
        ))
        logger.info("project_deleted", project_id=project_id, cascaded=cascaded)
        return DeletedProject(deleted_id=project_id, cascaded_expenses=cascaded)
