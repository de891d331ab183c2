"""Pydantic schemas for request/response validation"""

from app.schemas.common import ErrorResponse, HealthResponse
from app.schemas.deletion import (
    ConfirmDeletionRequest,
    ConfirmDeletionResponse,
    InitiateDeletionRequest,
    InitiateDeletionResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthResponse",
    # Deletion
    "ConfirmDeletionRequest",
    "ConfirmDeletionResponse",
    "InitiateDeletionRequest",
    "InitiateDeletionResponse",
]
