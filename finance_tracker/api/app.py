"""
HTTP Application

DESIGN DECISION: Errors are mapped in one place. Services raise the
domain exceptions (ValidationError, NotFoundError, StorageError) and the
handlers here turn them into status codes:

- ValidationError / malformed body -> 400 with the field issues
- NotFoundError                    -> 404
- StorageError / anything else     -> 500 with a generic message;
                                      details go to the log only

Every request gets a correlation id. It is bound into the structlog
context, passed to the service for audit events, and echoed back in the
X-Correlation-ID header.
"""

from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finance_tracker import __version__
from finance_tracker.api.routes import router
from finance_tracker.audit import configure_logging, create_correlation_id
from finance_tracker.config import Settings, get_settings
from finance_tracker.orchestrator import create_app_components
from finance_tracker.services.mutations import MutationService
from finance_tracker.services.storage import NotFoundError, StorageError
from finance_tracker.validation import ValidationError


logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
SERVER_ERROR_MESSAGE = "Server error"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("request_rejected", path=request.url.path, error=exc.message)
        return _error(
            status.HTTP_400_BAD_REQUEST,
            exc.message,
            issues=exc.issues_as_dicts(),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        # Raised by FastAPI itself, e.g. for a body that is not valid JSON
        issues = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())) or "body",
                "issue_type": err.get("type", "invalid_value"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.info("request_malformed", path=request.url.path, issues=issues)
        return _error(status.HTTP_400_BAD_REQUEST, "Malformed request", issues=issues)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("storage_error", path=request.url.path, error=str(exc))
        service: MutationService = request.app.state.service
        await service.audit_logger.log_storage_error(
            operation=f"{request.method} {request.url.path}",
            error_message=str(exc),
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        service: MutationService = request.app.state.service
        await service.audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"operation": f"{request.method} {request.url.path}"},
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


def create_app(
    service: Optional[MutationService] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        service: Mutation service to serve. Built from settings when None.
        settings: Defaults to get_settings().
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level, settings.app.log_json)

    if service is None:
        service, _ = create_app_components(settings)

    app = FastAPI(
        title="Finance Tracker API",
        description="Expenses, income and budget-tracked projects.",
        version=__version__,
    )
    app.state.service = service
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        correlation_id = create_correlation_id()
        request.state.correlation_id = correlation_id
        structlog.contextvars.bind_contextvars(correlation_id=str(correlation_id))
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers[CORRELATION_HEADER] = str(correlation_id)
        return response

    _register_exception_handlers(app)
    app.include_router(router)
    return app


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    run()
