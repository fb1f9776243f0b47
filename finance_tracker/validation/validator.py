"""
Boundary Validation

DESIGN DECISION: Validation happens in two distinct stages, both before
any store interaction:

STAGE 1 - IDENTIFIER CHECK:
- Path identifiers must be 24-character hex strings
- A malformed id never reaches a store lookup

STAGE 2 - PAYLOAD VALIDATION:
- Required field presence
- Type checking (budgets must be real numbers)
- Numeric ranges (budget >= 0, project expense amount > 0)

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace. It reports them back to the caller.
"""

from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.models.entities import is_valid_object_id
from finance_tracker.models.payloads import ValidationIssue


ModelT = TypeVar("ModelT", bound=BaseModel)

# pydantic error types mapped onto our coarser issue types
_ISSUE_TYPES = {
    "missing": "missing",
    "string_too_short": "missing",
    "string_pattern_mismatch": "malformed_id",
    "greater_than": "out_of_range",
    "greater_than_equal": "out_of_range",
    "float_type": "invalid_type",
    "float_parsing": "invalid_type",
    "finite_number": "invalid_value",
    "string_type": "invalid_type",
    "datetime_parsing": "invalid_type",
    "datetime_from_date_parsing": "invalid_type",
    "model_attributes_type": "invalid_type",
}


class ValidationError(Exception):
    """
    Input rejected at the boundary.

    Carries a human-readable message plus the field-level issues that
    caused it.
    """

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.message = message
        self.issues = issues or []

    def issues_as_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


def issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    """Flatten a pydantic error into ValidationIssues."""
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        issue_type = _ISSUE_TYPES.get(err.get("type", ""), "invalid_value")
        message = err.get("msg", "Invalid value")
        # model-level validators prefix their message
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append(ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=message,
        ))
    return issues


def _summarize(issues: list[ValidationIssue]) -> str:
    missing = [i.field for i in issues if i.issue_type == "missing"]
    if missing and len(missing) == len(issues):
        return f"Missing required fields: {', '.join(missing)}"
    first = issues[0]
    if first.field == "body":
        return first.message
    return f"Invalid {first.field}: {first.message}"


def require_object_id(value: Any, field: str = "id") -> str:
    """
    Stage 1: reject a malformed identifier.

    Returns the normalized (trimmed, lowercase) id.
    """
    if not is_valid_object_id(value):
        raise ValidationError(
            f"Invalid {field}",
            [ValidationIssue(
                field=field,
                issue_type="malformed_id",
                message=f"{value!r} is not a valid identifier",
            )],
        )
    return value.strip().lower()


def validate_payload(model: type[ModelT], data: Any) -> ModelT:
    """
    Stage 2: validate a request body against a payload model.

    Raises:
        ValidationError: with one issue per failing field
    """
    if not isinstance(data, dict):
        raise ValidationError(
            "Request body must be a JSON object",
            [ValidationIssue(
                field="body",
                issue_type="invalid_type",
                message="Expected a JSON object",
            )],
        )
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        issues = issues_from_pydantic(e)
        raise ValidationError(_summarize(issues), issues) from e
