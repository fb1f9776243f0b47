"""
HTTP Routes

Thin handlers: pull the service and correlation id off the request,
call the MutationService, shape the JSON. All error mapping lives in the
exception handlers registered by create_app.

Expense and income responses are wrapped as {"success": true, "data": ...};
project routes return the documents bare.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Request, status
from fastapi.responses import JSONResponse

from finance_tracker.services.mutations import MutationService


router = APIRouter()


def _service(request: Request) -> MutationService:
    return request.app.state.service


def _correlation_id(request: Request) -> UUID:
    return request.state.correlation_id


def _envelope(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True, "data": data})


# =============================================================================
# Expenses & income
# =============================================================================

@router.get("/expenses")
async def list_expenses(request: Request) -> JSONResponse:
    expenses = await _service(request).list_expenses()
    return _envelope([e.to_payload() for e in expenses])


@router.post("/expenses")
async def create_expense(request: Request, data: Any = Body(default=None)) -> JSONResponse:
    expense = await _service(request).create_expense(data, _correlation_id(request))
    return _envelope(expense.to_payload(), status.HTTP_201_CREATED)


@router.get("/income")
async def list_income(request: Request) -> JSONResponse:
    income = await _service(request).list_income()
    return _envelope([i.to_payload() for i in income])


@router.post("/income")
async def create_income(request: Request, data: Any = Body(default=None)) -> JSONResponse:
    income = await _service(request).create_income(data, _correlation_id(request))
    return _envelope(income.to_payload(), status.HTTP_201_CREATED)


# =============================================================================
# Projects
# =============================================================================

@router.get("/projects")
async def list_projects(request: Request) -> JSONResponse:
    projects = await _service(request).list_projects()
    return JSONResponse(content=[p.to_payload() for p in projects])


@router.post("/projects")
async def create_project(request: Request, data: Any = Body(default=None)) -> JSONResponse:
    project = await _service(request).create_project(data, _correlation_id(request))
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=project.to_payload())


@router.put("/projects/{project_id}")
async def update_project(
    project_id: str,
    request: Request,
    data: Any = Body(default=None),
) -> JSONResponse:
    project = await _service(request).update_project(
        project_id, data, _correlation_id(request)
    )
    return JSONResponse(content=project.to_payload())


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, request: Request) -> JSONResponse:
    deleted = await _service(request).delete_project(project_id, _correlation_id(request))
    return JSONResponse(content={
        "message": "Project deleted successfully",
        "deletedId": deleted.deleted_id,
        "cascadedExpenses": deleted.cascaded_expenses,
    })


@router.get("/projects/{project_id}/expenses")
async def list_project_expenses(project_id: str, request: Request) -> JSONResponse:
    rows = await _service(request).list_project_expenses(
        project_id, _correlation_id(request)
    )
    return JSONResponse(content=[r.to_payload() for r in rows])


@router.post("/projects/{project_id}/expenses")
async def add_project_expense(
    project_id: str,
    request: Request,
    data: Any = Body(default=None),
) -> JSONResponse:
    row = await _service(request).add_project_expense(
        project_id, data, _correlation_id(request)
    )
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=row.to_payload())


# =============================================================================
# Health
# =============================================================================

@router.get("/health")
async def health(request: Request) -> dict:
    settings = request.app.state.settings
    return {
        "status": "ok",
        "environment": settings.app.app_environment,
        "storage": type(_service(request).store).__name__,
    }
