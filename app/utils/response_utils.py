"""Standardized response utilities."""

from fastapi import status
from fastapi.responses import JSONResponse


def error_response(
    code: str,
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    headers: dict | None = None,
) -> JSONResponse:
    """Create a standardized error response.

    The body is ``{"code": ..., "message": ...}``; clients show ``message``
    to the user and branch on ``code``.

    Args:
        code: Error code (e.g., 'VALIDATION_ERROR', 'NOT_FOUND')
        message: Human-readable error message
        status_code: HTTP status code
        headers: Extra response headers (e.g. Retry-After)

    Returns:
        JSONResponse with error structure
    """
    return JSONResponse(
        status_code=status_code,
        content={"code": code, "message": message},
        headers=headers,
    )


def validation_error(message: str = "Invalid request") -> JSONResponse:
    """Create a validation error response (422)."""
    return error_response(
        code="VALIDATION_ERROR",
        message=message,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


def internal_error(
    message: str = "An unexpected error occurred",
) -> JSONResponse:
    """Create an internal server error response (500)."""
    return error_response(
        code="INTERNAL_ERROR",
        message=message,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
