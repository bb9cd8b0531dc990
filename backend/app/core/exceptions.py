"""
Global exception handlers for FastAPI application.

Public API errors are rendered as ``{"message": ...}`` bodies.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from app.utils.exceptions import (
    JudgeTemplatesException,
    AuthenticationError,
    AuthorizationError,
    TemplateNotFoundError,
    TemplateVersionConflictError,
    ValidationError as CustomValidationError,
)


async def judge_templates_exception_handler(request: Request, exc: JudgeTemplatesException) -> JSONResponse:
    """Handle custom application exceptions."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    # Map exception types to status codes
    if isinstance(exc, AuthenticationError):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, AuthorizationError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, TemplateNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, TemplateVersionConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, CustomValidationError):
        status_code = status.HTTP_400_BAD_REQUEST

    content = {"message": exc.message}
    if isinstance(exc, CustomValidationError) and exc.field:
        content["field"] = exc.field

    if status_code >= 500:
        logger.opt(exception=exc).error("Application exception: {}", exc.message)
    else:
        logger.warning("Request rejected ({}): {}", status_code, exc.message)

    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []) if loc != "body")
        errors.append({
            "field": field,
            "message": error.get("msg"),
            "type": error.get("type")
        })

    first = errors[0] if errors else {"field": "", "message": "Request validation failed"}
    error_response = {
        "message": f"{first['field']}: {first['message']}" if first["field"] else first["message"],
        "errors": errors,
    }

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions without leaking internal details."""
    if isinstance(exc, SQLAlchemyTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"message": "Database is busy. Please retry in a moment."},
            headers={"Retry-After": "3"},
        )

    logger.opt(exception=exc).error("Unhandled exception: {}", exc.__class__.__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"}
    )
