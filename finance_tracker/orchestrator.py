"""
Application Wiring for Finance Tracker

This module ties together the storage backend, the audit logger and the
mutation service. Both entry points (the HTTP API and the dashboard's
local mode) build their components here so they share one wiring.

DESIGN DECISION: The backend is chosen by configuration
(STORAGE_BACKEND). If Google Sheets is selected but not configured,
we fall back to in-memory storage with a warning rather than refusing
to start.
"""

from typing import Optional

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.config import Settings, get_settings
from finance_tracker.services.mutations import MutationService
from finance_tracker.services.storage import (
    AuditStorageInterface,
    EntityStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    InMemoryAuditStorage,
    InMemoryEntityStore,
)


logger = structlog.get_logger(__name__)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[MutationService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to wire from. Defaults to get_settings().

    Returns:
        (mutation_service, sheets_client) - sheets_client is None for
        the in-memory backend.
    """
    settings = settings or get_settings()
    sheets_client = None
    store: EntityStore
    audit_storage: AuditStorageInterface

    if settings.storage.backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            store = GoogleSheetsEntityStore(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))
            sheets_client = None
            store = InMemoryEntityStore()
            audit_storage = InMemoryAuditStorage()
    else:
        store = InMemoryEntityStore()
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)
    service = MutationService(store, audit_logger)

    logger.info(
        "components_created",
        backend=type(store).__name__,
        environment=settings.app.app_environment,
    )
    return service, sheets_client
