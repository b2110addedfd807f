"""JSON envelopes for the non-streaming endpoints and error responses."""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class ApiResponse[T](BaseModel):
    """Standard API response wrapper.

    Attributes:
        success: Whether the request was successful.
        data: The response payload (when success is True).
        message: A human-readable message about the response.
        error: Error details (when success is False).
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    error: dict[str, Any] | None = None


class ErrorResponse(ApiResponse[None]):
    success: bool = False
    message: str = "An error occurred"


class HealthStatus(BaseModel):
    """Liveness plus whether the domain matcher has been built yet."""

    status: Literal["healthy"] = "healthy"
    message: str
    domain_matcher: Literal["ready", "pending"]
