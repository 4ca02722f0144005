"""Response envelope models.

Consistent response format for all API endpoints.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources and lists.

    Usage:
        @router.get("/rfcs/{slug}/comments")
        async def list_comments(slug: str) -> DataResponse[list[CommentOut]]:
            return DataResponse(data=[...])
    """

    data: T


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        details: Optional list of field-level errors (for validation).
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope: ``{"error": {...}}``."""

    error: ErrorDetail
