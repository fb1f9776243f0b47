"""
Request Payload Models

What callers may send when creating or updating documents. These are
checked at the boundary, before any store interaction; the stored
documents in entities.py re-validate on their own.

DESIGN DECISION: Project budgets and project-expense amounts must be real
JSON numbers (strings and booleans are rejected). Expense and income
amounts are lenient and accept numeric strings, the way a document store
would cast them.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from finance_tracker.models.entities import ObjectIdStr, UtcDatetime


class PayloadModel(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        allow_inf_nan=False,
    )


class ValidationIssue(BaseModel):
    """A single field-level validation problem."""

    field: str = Field(
        ...,
        description="Field with the issue (dotted path for nested fields)"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'malformed_id')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ProjectCreate(PayloadModel):
    name: str = Field(..., min_length=1, max_length=200)
    budget: float = Field(..., ge=0, strict=True)
    description: Optional[str] = Field(default=None, max_length=1000)


class ProjectUpdate(PayloadModel):
    """
    Partial project update.

    Unknown keys are dropped, so "spent", "id" or "createdAt" in a
    patch never reach the store.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    budget: Optional[float] = Field(default=None, ge=0, strict=True)
    description: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode='after')
    def reject_null_required(self) -> 'ProjectUpdate':
        for field_name in ("name", "budget"):
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self

    def to_patch(self) -> dict[str, Any]:
        patch = self.model_dump(exclude_unset=True)
        if "description" in patch and patch["description"] is None:
            patch["description"] = ""
        return patch


class ExpenseCreate(PayloadModel):
    amount: float
    category: str = Field(..., min_length=1, max_length=100)
    note: Optional[str] = Field(default=None, max_length=500)
    project_id: ObjectIdStr
    date: Optional[UtcDatetime] = None


class IncomeCreate(PayloadModel):
    amount: float = Field(..., ge=0)
    source: str = Field(..., min_length=1, max_length=100)
    note: Optional[str] = Field(default=None, max_length=500)
    date: Optional[UtcDatetime] = None


class ProjectExpenseCreate(PayloadModel):
    """
    A new expense against a project.

    The project comes from the URL, never from the body.
    """
    amount: float = Field(..., gt=0, strict=True)
    description: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = Field(default=None, max_length=100)
    date: Optional[UtcDatetime] = None
