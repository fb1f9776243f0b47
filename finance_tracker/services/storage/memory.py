"""
In-Memory Storage Implementation

Default backend for local runs and the backend every test uses.
Documents live in one insertion-ordered dict per kind; nothing survives
a restart.
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.entities import EntityKind, EntityModel
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    EntityStore,
    NotFoundError,
    StorageError,
    merge_patch,
    newest_first,
)
from finance_tracker.validation.validator import ValidationError, issues_from_pydantic


class InMemoryEntityStore(EntityStore):
    """Entity store backed by plain dicts."""

    def __init__(self):
        self._docs: dict[EntityKind, dict[str, EntityModel]] = {
            kind: {} for kind in EntityKind
        }

    async def create(self, entity: EntityModel) -> EntityModel:
        try:
            stored = type(entity).model_validate(entity.model_dump())
        except PydanticValidationError as e:
            issues = issues_from_pydantic(e)
            raise ValidationError(f"Invalid {entity.kind.value}", issues) from e
        docs = self._docs[entity.kind]
        if stored.id in docs:
            raise StorageError(f"Duplicate id {stored.id}")
        docs[stored.id] = stored
        return stored.model_copy()

    async def list_all(self, kind: EntityKind) -> list[EntityModel]:
        return [e.model_copy() for e in newest_first(kind, list(self._docs[kind].values()))]

    async def find_by_id(self, kind: EntityKind, entity_id: str) -> EntityModel:
        entity = self._docs[kind].get(entity_id)
        if entity is None:
            raise NotFoundError(kind, entity_id)
        return entity.model_copy()

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: dict[str, Any],
    ) -> EntityModel:
        current = self._docs[kind].get(entity_id)
        if current is None:
            raise NotFoundError(kind, entity_id)
        updated = merge_patch(current, patch)
        self._docs[kind][entity_id] = updated
        return updated.model_copy()

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        if self._docs[kind].pop(entity_id, None) is None:
            raise NotFoundError(kind, entity_id)

    async def list_where(
        self,
        kind: EntityKind,
        field: str,
        value: Any,
    ) -> list[EntityModel]:
        matches = [e for e in self._docs[kind].values() if getattr(e, field, None) == value]
        return [e.model_copy() for e in newest_first(kind, matches)]

    async def delete_where(self, kind: EntityKind, field: str, value: Any) -> int:
        docs = self._docs[kind]
        doomed = [key for key, e in docs.items() if getattr(e, field, None) == value]
        for key in doomed:
            del docs[key]
        return len(doomed)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self, max_events: Optional[int] = None):
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        if self._max_events is not None and len(self._events) > self._max_events:
            del self._events[0]
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
