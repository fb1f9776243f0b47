"""
Core Data Models for Finance Tracker

These models define the stored documents: Project, Expense, Income and
ProjectExpense. They are designed to:
1. Enforce field-level validation whenever a document is created or updated
2. Be serializable for storage (snake_case) and for the API (camelCase)
3. Never store derived figures - a project's "spent" lives in ProjectView only

DESIGN DECISION: Identifiers are opaque 24-character hex strings
(4-byte creation timestamp + 8 random bytes). Anything else is rejected
before a store lookup is attempted.
"""

import os
import re
import time
from datetime import date as date_type
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel


OBJECT_ID_PATTERN = r"^[0-9a-f]{24}$"
_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def new_object_id() -> str:
    """Generate a new 24-character hex identifier."""
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{os.urandom(8).hex()}"


def is_valid_object_id(value: Any) -> bool:
    """Check whether a value is a well-formed identifier."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value.strip()))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_date_only(value: Any) -> Any:
    # Plain dates (and "YYYY-MM-DD" strings) mean midnight UTC
    if isinstance(value, datetime):
        return value
    if isinstance(value, date_type):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and _DATE_ONLY_RE.match(value.strip()):
        parsed = date_type.fromisoformat(value.strip())
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)
    return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_object_id(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


UtcDatetime = Annotated[
    datetime,
    BeforeValidator(_parse_date_only),
    AfterValidator(_as_utc),
]

ObjectIdStr = Annotated[
    str,
    BeforeValidator(normalize_object_id),
    Field(pattern=OBJECT_ID_PATTERN),
]


# =============================================================================
# ENUMS
# =============================================================================

class EntityKind(str, Enum):
    """
    The four persisted document kinds.

    Each kind knows its model class and the field its listings sort on
    (newest first).
    """
    PROJECT = "project"
    EXPENSE = "expense"
    INCOME = "income"
    PROJECT_EXPENSE = "project_expense"

    @property
    def model(self) -> type["EntityModel"]:
        return _KIND_MODELS[self]

    @property
    def sort_field(self) -> str:
        if self in (EntityKind.EXPENSE, EntityKind.INCOME):
            return "date"
        return "created_at"


# =============================================================================
# STORED DOCUMENTS
# =============================================================================

class EntityModel(BaseModel):
    """Fields shared by every stored document."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    kind: ClassVar[EntityKind]

    id: ObjectIdStr = Field(
        default_factory=new_object_id,
        description="Opaque 24-character hex identifier"
    )
    created_at: UtcDatetime = Field(
        default_factory=utcnow,
        description="When the document was created"
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys, as served by the API."""
        return self.model_dump(mode="json", by_alias=True)


class Project(EntityModel):
    """
    A budget-tracked project.

    "spent" is NOT a field here: it is always recomputed from the
    project's ProjectExpense rows (see ProjectView).
    """
    kind: ClassVar[EntityKind] = EntityKind.PROJECT

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Project name"
    )
    budget: float = Field(
        ...,
        ge=0,
        description="Budget for the project"
    )
    description: str = Field(
        default="",
        max_length=1000,
    )
    updated_at: UtcDatetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )

    @field_validator('description', mode='before')
    @classmethod
    def blank_description(cls, v: Any) -> Any:
        return "" if v is None else v


class Expense(EntityModel):
    """
    A global expense.

    The amount sign is not checked and project_id is advisory: the
    referenced project may not exist, and deleting a project leaves its
    expenses untouched.
    """
    kind: ClassVar[EntityKind] = EntityKind.EXPENSE

    amount: float = Field(
        ...,
        description="Amount spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category label (free text server-side)"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    date: UtcDatetime = Field(
        default_factory=utcnow,
        description="When the expense happened"
    )
    project_id: ObjectIdStr = Field(
        ...,
        description="Advisory reference to a project"
    )

    @field_validator('note', mode='before')
    @classmethod
    def blank_note(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Income(EntityModel):
    """An income entry."""
    kind: ClassVar[EntityKind] = EntityKind.INCOME

    amount: float = Field(
        ...,
        ge=0,
        description="Amount received"
    )
    source: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Where the money came from"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    date: UtcDatetime = Field(
        default_factory=utcnow,
        description="When the income was received"
    )

    @field_validator('note', mode='before')
    @classmethod
    def blank_note(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProjectExpense(EntityModel):
    """An expense booked against a project's budget."""
    kind: ClassVar[EntityKind] = EntityKind.PROJECT_EXPENSE

    project_id: ObjectIdStr = Field(
        ...,
        description="Owning project"
    )
    amount: float = Field(
        ...,
        ge=0,
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    category: str = Field(
        default="",
        max_length=100,
    )
    date: UtcDatetime = Field(
        default_factory=utcnow,
    )

    @field_validator('category', mode='before')
    @classmethod
    def blank_category(cls, v: Any) -> Any:
        return "" if v is None else v


_KIND_MODELS: dict[EntityKind, type[EntityModel]] = {
    EntityKind.PROJECT: Project,
    EntityKind.EXPENSE: Expense,
    EntityKind.INCOME: Income,
    EntityKind.PROJECT_EXPENSE: ProjectExpense,
}


# =============================================================================
# READ MODELS
# =============================================================================

class ProjectView(Project):
    """
    A project as served to readers: the stored document plus its
    derived spend, recomputed on every read.
    """

    spent: float = Field(
        default=0.0,
        description="Sum of the project's ProjectExpense amounts"
    )

    @computed_field(alias="overBudget")
    @property
    def over_budget(self) -> bool:
        return self.spent > self.budget

    @classmethod
    def from_project(cls, project: Project, spent: float) -> "ProjectView":
        return cls(**project.model_dump(), spent=spent)
