"""Common response schemas"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response"""
    code: str
    message: str


class HealthResponse(BaseModel):
    status: str
    database: str
    scheduler: str
