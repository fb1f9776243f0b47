"""Tests for the mutation service."""

import pytest

from finance_tracker.models import EntityKind
from finance_tracker.models.audit import AuditEventType
from finance_tracker.services.mutations import MutationService
from finance_tracker.services.storage import InMemoryEntityStore, NotFoundError
from finance_tracker.validation import ValidationError


UNKNOWN_ID = "65a1b2c3d4e5f6a7b8c9d0e1"


class RecordingStore(InMemoryEntityStore):
    """In-memory store that records which methods were called."""

    def __init__(self):
        super().__init__()
        self.calls = []

    async def find_by_id(self, kind, entity_id):
        self.calls.append("find_by_id")
        return await super().find_by_id(kind, entity_id)

    async def create(self, entity):
        self.calls.append("create")
        return await super().create(entity)

    async def delete(self, kind, entity_id):
        self.calls.append("delete")
        return await super().delete(kind, entity_id)


async def event_types(audit_storage):
    return [e.event_type for e in await audit_storage.get_recent_events()]


class TestCreateProject:
    """Tests for project creation."""

    @pytest.mark.asyncio
    async def test_create_project(self, service):
        """Test a new project starts with nothing spent."""
        project = await service.create_project({"name": " Trip ", "budget": 1000})
        assert project.name == "Trip"
        assert project.spent == 0
        assert project.over_budget is False
        assert project.description == ""
        assert project.created_at == project.updated_at

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"budget": 100},
        {"name": "", "budget": 100},
        {"name": "Trip"},
        {"name": "Trip", "budget": "100"},
        {"name": "Trip", "budget": -5},
        {"name": "Trip", "budget": None},
    ])
    async def test_invalid_project_rejected(self, service, store, payload):
        """Test missing name, missing/non-numeric/negative budget."""
        with pytest.raises(ValidationError):
            await service.create_project(payload)
        assert await store.list_all(EntityKind.PROJECT) == []

    @pytest.mark.asyncio
    async def test_validation_failure_is_audited(self, service, audit_storage):
        """Test a rejected payload leaves a warning in the audit log."""
        with pytest.raises(ValidationError) as exc_info:
            await service.create_project({"name": "Trip", "budget": -5})
        assert exc_info.value.issues[0].field == "budget"
        assert await event_types(audit_storage) == [AuditEventType.VALIDATION_FAILED]

    @pytest.mark.asyncio
    async def test_non_object_body_rejected(self, service):
        """Test a JSON array body is rejected."""
        with pytest.raises(ValidationError):
            await service.create_project([1, 2])


class TestCreateExpenseAndIncome:
    """Tests for expense and income entries."""

    @pytest.mark.asyncio
    async def test_create_expense_unknown_project_allowed(self, service):
        """Test the projectId is not looked up."""
        expense = await service.create_expense(
            {"amount": 25, "category": "Bills", "projectId": UNKNOWN_ID}
        )
        assert expense.project_id == UNKNOWN_ID
        assert expense.date == expense.created_at

    @pytest.mark.asyncio
    async def test_create_expense_negative_amount_allowed(self, service):
        """Test the expense amount sign is not checked."""
        expense = await service.create_expense(
            {"amount": -10, "category": "Other", "projectId": UNKNOWN_ID}
        )
        assert expense.amount == -10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"category": "Bills", "projectId": UNKNOWN_ID},
        {"amount": 5, "projectId": UNKNOWN_ID},
        {"amount": 5, "category": "Bills"},
        {"amount": 5, "category": "Bills", "projectId": "nope"},
        {"amount": "lots", "category": "Bills", "projectId": UNKNOWN_ID},
    ])
    async def test_invalid_expense_rejected(self, service, payload):
        """Test missing amount/category/projectId and bad values."""
        with pytest.raises(ValidationError):
            await service.create_expense(payload)

    @pytest.mark.asyncio
    async def test_expense_date_kept(self, service):
        """Test a supplied date is stored as midnight UTC."""
        expense = await service.create_expense({
            "amount": 5, "category": "Bills", "projectId": UNKNOWN_ID, "date": "2025-03-01"
        })
        assert expense.date.isoformat() == "2025-03-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_create_income(self, service, audit_storage):
        """Test income is stored and audited."""
        income = await service.create_income({"amount": 500, "source": "Salary", "note": "June"})
        assert income.note == "June"
        assert await service.list_income() == [income]
        assert await event_types(audit_storage) == [AuditEventType.INCOME_CREATED]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"amount": -1, "source": "Salary"},
        {"amount": 10},
        {"amount": 10, "source": "  "},
    ])
    async def test_invalid_income_rejected(self, service, payload):
        """Test negative amounts and missing source."""
        with pytest.raises(ValidationError):
            await service.create_income(payload)


class TestProjectExpenses:
    """Tests for expenses booked against projects."""

    @pytest.mark.asyncio
    async def test_over_budget_scenario(self, service):
        """Test 300 + 800 against a 1000 budget."""
        project = await service.create_project({"name": "Trip", "budget": 1000})
        await service.add_project_expense(project.id, {"amount": 300, "description": "Hotel"})
        await service.add_project_expense(project.id, {"amount": 800, "description": "Flights"})

        [view] = await service.list_projects()
        assert view.spent == 1100
        assert view.over_budget is True

    @pytest.mark.asyncio
    async def test_malformed_id_rejected_before_store_access(self):
        """Test no store call happens for a bad id."""
        store = RecordingStore()
        service = MutationService(store)
        with pytest.raises(ValidationError):
            await service.add_project_expense("bad-id", {"amount": 5, "description": "x"})
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_malformed_id_checked_before_payload(self, service):
        """Test the id error wins over a bad payload."""
        with pytest.raises(ValidationError) as exc_info:
            await service.add_project_expense("bad-id", {})
        assert exc_info.value.issues[0].issue_type == "malformed_id"

    @pytest.mark.asyncio
    async def test_unknown_project(self, service, audit_storage):
        """Test NotFoundError for a well-formed unknown id."""
        with pytest.raises(NotFoundError):
            await service.add_project_expense(UNKNOWN_ID, {"amount": 5, "description": "x"})
        assert await event_types(audit_storage) == [AuditEventType.ENTITY_NOT_FOUND]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"amount": 0, "description": "x"},
        {"amount": -3, "description": "x"},
        {"amount": "5", "description": "x"},
        {"amount": 5},
        {"amount": 5, "description": ""},
    ])
    async def test_invalid_project_expense(self, service, payload):
        """Test non-positive or non-numeric amounts and missing description."""
        project = await service.create_project({"name": "Trip", "budget": 10})
        with pytest.raises(ValidationError):
            await service.add_project_expense(project.id, payload)

    @pytest.mark.asyncio
    async def test_list_project_expenses(self, service):
        """Test only the project's own rows, newest first."""
        a = await service.create_project({"name": "A", "budget": 10})
        b = await service.create_project({"name": "B", "budget": 10})
        first = await service.add_project_expense(a.id, {"amount": 1, "description": "one"})
        await service.add_project_expense(b.id, {"amount": 2, "description": "two"})
        second = await service.add_project_expense(a.id, {"amount": 3, "description": "three"})

        rows = await service.list_project_expenses(a.id)
        assert [r.id for r in rows] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_list_project_expenses_errors(self, service):
        """Test malformed and unknown project ids."""
        with pytest.raises(ValidationError):
            await service.list_project_expenses("xyz")
        with pytest.raises(NotFoundError):
            await service.list_project_expenses(UNKNOWN_ID)


class TestUpdateProject:
    """Tests for project updates."""

    @pytest.mark.asyncio
    async def test_update_project(self, service):
        """Test fields merge and spent is recomputed."""
        project = await service.create_project({"name": "Trip", "budget": 1000})
        await service.add_project_expense(project.id, {"amount": 400, "description": "x"})

        updated = await service.update_project(project.id, {"budget": 300, "spent": 0})
        assert updated.budget == 300
        assert updated.name == "Trip"
        assert updated.spent == 400
        assert updated.over_budget is True
        assert updated.updated_at >= project.updated_at

    @pytest.mark.asyncio
    async def test_update_negative_budget_rejected(self, service):
        """Test invalid patches are rejected."""
        project = await service.create_project({"name": "Trip", "budget": 1000})
        with pytest.raises(ValidationError):
            await service.update_project(project.id, {"budget": -1})

    @pytest.mark.asyncio
    async def test_update_unknown_project(self, service):
        """Test NotFoundError when the project does not exist."""
        with pytest.raises(NotFoundError):
            await service.update_project(UNKNOWN_ID, {"name": "New"})

    @pytest.mark.asyncio
    async def test_update_malformed_id(self, service):
        """Test ValidationError for a malformed id."""
        with pytest.raises(ValidationError):
            await service.update_project("123", {"name": "New"})


class TestDeleteProject:
    """Tests for project deletion and its cascade."""

    @pytest.mark.asyncio
    async def test_delete_cascades_to_project_expenses(self, service, store):
        """Test the project's rows go, other projects' rows stay."""
        doomed = await service.create_project({"name": "Doomed", "budget": 10})
        kept = await service.create_project({"name": "Kept", "budget": 10})
        await service.add_project_expense(doomed.id, {"amount": 1, "description": "a"})
        await service.add_project_expense(doomed.id, {"amount": 2, "description": "b"})
        await service.add_project_expense(kept.id, {"amount": 3, "description": "c"})

        result = await service.delete_project(doomed.id)
        assert result.deleted_id == doomed.id
        assert result.cascaded_expenses == 2

        rows = await store.list_all(EntityKind.PROJECT_EXPENSE)
        assert [r.project_id for r in rows] == [kept.id]
        assert [p.id for p in await service.list_projects()] == [kept.id]

    @pytest.mark.asyncio
    async def test_delete_leaves_global_expenses(self, service):
        """Test expenses pointing at the project are not cascaded."""
        project = await service.create_project({"name": "Trip", "budget": 10})
        await service.create_expense(
            {"amount": 5, "category": "Bills", "projectId": project.id}
        )
        await service.delete_project(project.id)
        [expense] = await service.list_expenses()
        assert expense.project_id == project.id

    @pytest.mark.asyncio
    async def test_delete_audited(self, service, audit_storage):
        """Test delete and cascade both leave audit events."""
        project = await service.create_project({"name": "Trip", "budget": 10})
        await service.delete_project(project.id)
        types = await event_types(audit_storage)
        assert AuditEventType.PROJECT_DELETED in types
        assert AuditEventType.PROJECT_EXPENSES_CASCADED in types

    @pytest.mark.asyncio
    async def test_delete_twice(self, service):
        """Test a deleted project stays deleted."""
        project = await service.create_project({"name": "Trip", "budget": 10})
        await service.delete_project(project.id)
        with pytest.raises(NotFoundError):
            await service.delete_project(project.id)

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, service):
        """Test ValidationError for a malformed id."""
        with pytest.raises(ValidationError):
            await service.delete_project("not-an-id")


class TestListings:
    """Tests for list ordering."""

    @pytest.mark.asyncio
    async def test_projects_newest_first(self, service):
        """Test project listing order."""
        first = await service.create_project({"name": "First", "budget": 1})
        second = await service.create_project({"name": "Second", "budget": 1})
        assert [p.id for p in await service.list_projects()] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_expenses_by_date(self, service):
        """Test expense listing follows the expense date, not creation."""
        await service.create_expense(
            {"amount": 1, "category": "A", "projectId": UNKNOWN_ID, "date": "2025-01-01"}
        )
        await service.create_expense(
            {"amount": 2, "category": "B", "projectId": UNKNOWN_ID, "date": "2025-03-01"}
        )
        assert [e.amount for e in await service.list_expenses()] == [2, 1]
