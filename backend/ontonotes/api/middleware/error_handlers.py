"""Exception handlers turning ontology errors into JSON error bodies.

Every error response has the shape `{"error", "message", "detail"}`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ontonotes.core.errors import (
    CycleError,
    ImportFormatError,
    InvalidConceptError,
    NotFoundError,
    OntologyError,
    PersistenceError,
    UnknownParentError,
)
from ontonotes.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger(__name__)

DEFAULT_ERRORS: dict[int, tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method_not_allowed", "Method not allowed"),
    status.HTTP_409_CONFLICT: ("conflict", "Request conflicts with the current ontology"),
    422: ("invalid_value", "Request could not be applied"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
    status.HTTP_503_SERVICE_UNAVAILABLE: ("storage_unavailable", "Ontology storage is unavailable"),
}

# Most specific class first.
ONTOLOGY_ERRORS: tuple[tuple[type[OntologyError], int, str], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (UnknownParentError, 422, "unknown_parent"),
    (InvalidConceptError, 422, "invalid_value"),
    (CycleError, status.HTTP_409_CONFLICT, "cycle"),
    (ImportFormatError, status.HTTP_400_BAD_REQUEST, "import_format"),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE, "persistence_error"),
)


def _response(status_code: int, error: str | None = None, message: str | None = None, detail: Any = None) -> JSONResponse:
    default_error, default_message = DEFAULT_ERRORS.get(
        status_code, DEFAULT_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error or default_error, "message": message or default_message, "detail": detail},
    )


def _error_detail(exc: OntologyError) -> dict[str, Any] | None:
    if isinstance(exc, NotFoundError):
        return {"id": exc.node_id}
    if isinstance(exc, UnknownParentError):
        return {"parent_id": exc.parent_id}
    if isinstance(exc, CycleError):
        return {"id": exc.node_id, "new_parent_id": exc.new_parent_id}
    return None


async def ontology_exception_handler(request: Request, exc: OntologyError) -> JSONResponse:
    for error_type, status_code, error in ONTOLOGY_ERRORS:
        if isinstance(exc, error_type):
            break
    else:
        status_code, error = status.HTTP_500_INTERNAL_SERVER_ERROR, "ontology_error"

    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _response(status_code, error, exc.message, _error_detail(exc))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _response(status.HTTP_400_BAD_REQUEST, detail={"errors": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without the raw `ctx`/`input` values, which may not serialize."""
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) and exc.detail else None
    response = _response(exc.status_code, message=message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(OntologyError, ontology_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)


__all__ = [
    "register_error_handlers",
    "ontology_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
]
