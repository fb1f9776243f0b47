"""
Shared fixtures.

Everything runs against in-memory storage; no network, no Google Sheets.
"""

import pytest
from fastapi.testclient import TestClient

from finance_tracker.api.app import create_app
from finance_tracker.audit import AuditLogger
from finance_tracker.config import Settings
from finance_tracker.services.mutations import MutationService
from finance_tracker.services.storage import InMemoryAuditStorage, InMemoryEntityStore


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def service(store, audit_storage):
    return MutationService(store, AuditLogger(audit_storage))


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def client(service, settings):
    return TestClient(create_app(service=service, settings=settings))
