"""Pydantic schemas for request/response validation."""

from unsubscribe_service.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "HealthResponse",
    "ErrorResponse",
]
