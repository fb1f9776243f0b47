from finance_tracker.validation.validator import (
    ValidationError,
    issues_from_pydantic,
    require_object_id,
    validate_payload,
)

__all__ = [
    "ValidationError",
    "issues_from_pydantic",
    "require_object_id",
    "validate_payload",
]
