"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. Non-technical users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (a project delete and its cascade are two steps)
- Limited query capabilities (we filter in Python)

Each entity kind gets its own worksheet. The header row is the model's
field names, so the sheet layout follows the models without a separate
column list to keep in sync.
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_tracker.models.entities import EntityKind, EntityModel
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    EntityStore,
    NotFoundError,
    StorageError,
    merge_patch,
    newest_first,
)
from finance_tracker.validation.validator import ValidationError, issues_from_pydantic


logger = structlog.get_logger(__name__)


# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def entity_columns(kind: EntityKind) -> list[str]:
    """Header row for a kind's worksheet."""
    return list(kind.model.model_fields)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for the connection.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        spreadsheet: Optional[gspread.Spreadsheet] = None,
    ):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
            logger.info("worksheet_created", title=title)
        return sheet

    def sheet_name(self, kind: EntityKind) -> str:
        return {
            EntityKind.PROJECT: self._settings.projects_sheet_name,
            EntityKind.EXPENSE: self._settings.expenses_sheet_name,
            EntityKind.INCOME: self._settings.income_sheet_name,
            EntityKind.PROJECT_EXPENSE: self._settings.project_expenses_sheet_name,
        }[kind]

    def get_entity_sheet(self, kind: EntityKind) -> gspread.Worksheet:
        """Get or create the worksheet for an entity kind."""
        return self._get_or_create(self.sheet_name(kind), entity_columns(kind), rows=1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        # More rows for audit log
        return self._get_or_create(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsEntityStore(EntityStore):
    """
    Google Sheets implementation of the entity store.

    One document per row. Datetimes are stored as ISO strings and a
    missing optional value as an empty cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _entity_to_row(self, entity: EntityModel) -> list:
        """Convert a document to a spreadsheet row."""
        row = []
        for column in entity_columns(entity.kind):
            value = getattr(entity, column)
            if value is None:
                row.append("")
            elif isinstance(value, datetime):
                row.append(value.isoformat())
            else:
                row.append(str(value))
        return row

    def _row_to_entity(self, kind: EntityKind, row: list) -> EntityModel:
        """Convert a spreadsheet row to a document."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        data = {}
        for idx, column in enumerate(entity_columns(kind)):
            value = safe_get(idx)
            if value != "":
                data[column] = value
        return kind.model.model_validate(data)

    def _load(self, kind: EntityKind) -> list[tuple[int, EntityModel]]:
        """Read every well-formed row as (sheet row number, document)."""
        sheet = self._client.get_entity_sheet(kind)
        loaded = []
        # Start from 2 (row 1 is header)
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                loaded.append((idx, self._row_to_entity(kind, row)))
            except ValueError as e:
                logger.warning("malformed_row_skipped", kind=kind.value, row=idx, error=str(e))
        return loaded

    async def create(self, entity: EntityModel) -> EntityModel:
        """Append a new document row."""
        try:
            stored = type(entity).model_validate(entity.model_dump())
            sheet = self._client.get_entity_sheet(entity.kind)
            sheet.append_row(self._entity_to_row(stored), value_input_option="RAW")
            return stored
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {entity.kind.value}", issues_from_pydantic(e)) from e
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {entity.kind.value}: {e}")

    async def list_all(self, kind: EntityKind) -> list[EntityModel]:
        try:
            return newest_first(kind, [entity for _, entity in self._load(kind)])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {kind.value}: {e}")

    async def find_by_id(self, kind: EntityKind, entity_id: str) -> EntityModel:
        try:
            for _, entity in self._load(kind):
                if entity.id == entity_id:
                    return entity
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {kind.value}: {e}")
        raise NotFoundError(kind, entity_id)

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: dict[str, Any],
    ) -> EntityModel:
        try:
            for idx, entity in self._load(kind):
                if entity.id == entity_id:
                    updated = merge_patch(entity, patch)
                    sheet = self._client.get_entity_sheet(kind)
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._entity_to_row(updated)],
                        value_input_option="RAW",
                    )
                    return updated
        except (StorageError, ValidationError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {kind.value}: {e}")
        raise NotFoundError(kind, entity_id)

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        try:
            for idx, entity in self._load(kind):
                if entity.id == entity_id:
                    self._client.get_entity_sheet(kind).delete_rows(idx)
                    return
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {kind.value}: {e}")
        raise NotFoundError(kind, entity_id)

    async def list_where(
        self,
        kind: EntityKind,
        field: str,
        value: Any,
    ) -> list[EntityModel]:
        entities = await self.list_all(kind)
        return [e for e in entities if getattr(e, field, None) == value]

    async def delete_where(self, kind: EntityKind, field: str, value: Any) -> int:
        try:
            doomed = [
                idx for idx, entity in self._load(kind)
                if getattr(entity, field, None) == value
            ]
            sheet = self._client.get_entity_sheet(kind)
            # Bottom-up so earlier row numbers stay valid
            for idx in reversed(doomed):
                sheet.delete_rows(idx)
            return len(doomed)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {kind.value} rows: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _load_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("malformed_audit_row_skipped", error=str(e))
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._load_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = [
                e for e in self._load_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._load_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
