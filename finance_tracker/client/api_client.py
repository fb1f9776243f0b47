"""
API Client

Synchronous httpx client for the Finance Tracker API, used by the
dashboard. Responses are parsed back into the same models the server
uses, so the aggregation engine can run on them unchanged.

Any non-2xx response becomes an ApiError carrying the server's error
string; transport failures become an ApiError with status_code 0.
"""

from typing import Any, Optional

import httpx
import structlog

from finance_tracker.models.entities import (
    Expense,
    Income,
    ProjectExpense,
    ProjectView,
)


logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """A request to the API failed."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class FinanceApiClient:
    """
    One method per endpoint.

    Pass http_client to reuse a configured client (tests hand in
    FastAPI's TestClient, which is an httpx.Client).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("api_unreachable", method=method, path=path, error=str(e))
            raise ApiError(0, f"Could not reach the server: {e}") from e

        if response.is_success:
            return response.json()

        message = f"Request failed with status {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            message = body["error"]
        logger.info("api_error", method=method, path=path, status=response.status_code)
        raise ApiError(response.status_code, message)

    # Expenses & income

    def list_expenses(self) -> list[Expense]:
        body = self._request("GET", "/expenses")
        return [Expense.model_validate(item) for item in body["data"]]

    def create_expense(self, payload: dict[str, Any]) -> Expense:
        body = self._request("POST", "/expenses", json=payload)
        return Expense.model_validate(body["data"])

    def list_income(self) -> list[Income]:
        body = self._request("GET", "/income")
        return [Income.model_validate(item) for item in body["data"]]

    def create_income(self, payload: dict[str, Any]) -> Income:
        body = self._request("POST", "/income", json=payload)
        return Income.model_validate(body["data"])

    # Projects

    def list_projects(self) -> list[ProjectView]:
        return [ProjectView.model_validate(item) for item in self._request("GET", "/projects")]

    def create_project(self, payload: dict[str, Any]) -> ProjectView:
        return ProjectView.model_validate(self._request("POST", "/projects", json=payload))

    def update_project(self, project_id: str, patch: dict[str, Any]) -> ProjectView:
        return ProjectView.model_validate(
            self._request("PUT", f"/projects/{project_id}", json=patch)
        )

    def delete_project(self, project_id: str) -> str:
        """Returns the deleted project's id."""
        return self._request("DELETE", f"/projects/{project_id}")["deletedId"]

    def list_project_expenses(self, project_id: str) -> list[ProjectExpense]:
        body = self._request("GET", f"/projects/{project_id}/expenses")
        return [ProjectExpense.model_validate(item) for item in body]

    def add_project_expense(self, project_id: str, payload: dict[str, Any]) -> ProjectExpense:
        return ProjectExpense.model_validate(
            self._request("POST", f"/projects/{project_id}/expenses", json=payload)
        )

    def health(self) -> dict:
        return self._request("GET", "/health")
