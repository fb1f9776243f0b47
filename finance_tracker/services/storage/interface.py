"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
One generic store covers all four document kinds; it knows nothing about
budgets or cascades. Those rules live in the mutation service.
"""

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.entities import EntityKind, EntityModel
from finance_tracker.validation.validator import ValidationError, issues_from_pydantic


class EntityStore(ABC):
    """
    Abstract interface for document storage.

    Any storage implementation (Google Sheets, in-memory, etc.)
    must implement these methods. Listings are ordered newest first
    by the kind's sort field; ties go to the most recently inserted.
    """

    @abstractmethod
    async def create(self, entity: EntityModel) -> EntityModel:
        """
        Persist a new document.

        Returns:
            The stored copy

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_all(self, kind: EntityKind) -> list[EntityModel]:
        """List every document of a kind, newest first."""
        pass

    @abstractmethod
    async def find_by_id(self, kind: EntityKind, entity_id: str) -> EntityModel:
        """
        Retrieve a document by its ID.

        Raises:
            NotFoundError: If no such document exists
        """
        pass

    @abstractmethod
    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: dict[str, Any],
    ) -> EntityModel:
        """
        Merge a patch into a stored document.

        The merged document is re-validated before it is written.

        Raises:
            NotFoundError: If no such document exists
            ValidationError: If the merged document is invalid
        """
        pass

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        """
        Delete a document by ID.

        Raises:
            NotFoundError: If no such document exists
        """
        pass

    @abstractmethod
    async def list_where(
        self,
        kind: EntityKind,
        field: str,
        value: Any,
    ) -> list[EntityModel]:
        """List documents whose field equals value, newest first."""
        pass

    @abstractmethod
    async def delete_where(self, kind: EntityKind, field: str, value: Any) -> int:
        """
        Delete every document whose field equals value.

        Returns:
            Number of documents deleted
        """
        pass


def merge_patch(entity: EntityModel, patch: dict[str, Any]) -> EntityModel:
    """Apply a patch to a document and re-validate the result."""
    data = entity.model_dump()
    data.update(patch)
    data["id"] = entity.id
    data["created_at"] = entity.created_at
    try:
        return type(entity).model_validate(data)
    except PydanticValidationError as e:
        issues = issues_from_pydantic(e)
        raise ValidationError(f"Invalid update for {entity.kind.value}", issues) from e


def newest_first(kind: EntityKind, entities: list[EntityModel]) -> list[EntityModel]:
    """Sort in insertion order into newest-first by the kind's sort field."""
    field = kind.sort_field
    # reversed() first so that ties keep the newest insert on top
    return sorted(reversed(entities), key=lambda e: getattr(e, field), reverse=True)


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (one API request).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""

    def __init__(self, kind: EntityKind, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.value.replace('_', ' ').capitalize()} not found")


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
