"""
Structured exceptions and error responses for Tasksync.

Every domain failure the scheduling engine can report maps to one exception
class here, and one FastAPI handler renders them all in the same shape:

    {"error": "<code>", "message": "<text>", "details": [...] | null}
"""

from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tasksync.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str
    message: str
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TasksyncException(Exception):
    """Base exception for all Tasksync errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(TasksyncException):
    """Referenced task, user, status or notification does not exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class InvalidRangeError(TasksyncException):
    """start_date falls after end_date."""

    def __init__(self, start_date, end_date):
        super().__init__(
            message="Start date must be on or before end date",
            error_code="invalid_range",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body", "start_date"],
                "msg": f"{start_date} is after {end_date}",
                "type": "range_error",
            }],
        )
        self.start_date = start_date
        self.end_date = end_date


class SchedulingConflictError(TasksyncException):
    """The assignee already has a task overlapping the requested range."""

    def __init__(self, user_id: str, conflicting_task_ids: List[str]):
        super().__init__(
            message="User already has an overlapping task",
            error_code="scheduling_conflict",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[
                {
                    "loc": ["body", "assigned_user_id"],
                    "msg": f"Overlaps task {task_id}",
                    "type": "conflict_error",
                }
                for task_id in conflicting_task_ids
            ],
        )
        self.user_id = user_id
        self.conflicting_task_ids = conflicting_task_ids


class ValidationError(TasksyncException):
    """Request validation error."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def tasksync_exception_handler(request: Request, exc: TasksyncException) -> JSONResponse:
    """Handle TasksyncException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render malformed request bodies and params as validation_error."""
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", "value_error"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Rejected {request.method} {request.url.path}: {len(details)} validation errors")
    return await tasksync_exception_handler(
        request, ValidationError("Request validation failed", details=details),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": None,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TasksyncException, tasksync_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
