"""Dashboard-side client: HTTP client, state cache and controller."""

from finance_tracker.client.api_client import ApiError, FinanceApiClient
from finance_tracker.client.cache import ClientStateCache, FetchStatus
from finance_tracker.client.controller import DashboardController

__all__ = [
    "ApiError",
    "ClientStateCache",
    "DashboardController",
    "FetchStatus",
    "FinanceApiClient",
]
