"""
Standard API response models and helpers for consistent response formatting.

Every endpoint uses these helpers, so clients only ever see three shapes:
- Success:   { "success": true, "data": <payload>, "meta": {...} }
- Paginated: { "success": true, "data": [...], "pagination": {...}, "meta": {...} }
- Error:     { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }
"""
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Standard error detail structure."""
    code: str = Field(..., description="Error code (e.g., 'notfound', 'validation')")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail = Field(..., description="Error details")


class PaginationMeta(BaseModel):
    """Page-number pagination metadata shared by every list endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., alias="totalPages", ge=0)
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_prev_page: bool = Field(..., alias="hasPrevPage")
    next_page: int | None = Field(default=None, alias="nextPage")
    prev_page: int | None = Field(default=None, alias="prevPage")

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = -(-total // limit) if total else 0
        has_next = page < total_pages
        has_prev = page > 1
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=has_next,
            has_prev_page=has_prev,
            next_page=page + 1 if has_next else None,
            prev_page=page - 1 if has_prev else None,
        )


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (counts, timestamps, etc.)

    Returns:
        dict: { "success": true, "data": <data>, "meta": <meta> }
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def paginated_response(
    items: list[Any],
    pagination: PaginationMeta,
    filter: dict[str, Any] | None = None,
    sort: dict[str, int] | None = None,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Args:
        items: Serialized items for this page
        pagination: Page metadata (see PaginationMeta.build)
        filter: The filter actually applied, echoed for debugging clients
        sort: The sort actually applied

    Returns:
        dict: { "success": true, "data": <items>, "pagination": {...}, "meta": {"filter", "sort"} }
    """
    response = {
        "success": True,
        "data": items,
        "pagination": pagination.model_dump(by_alias=True),
    }
    if filter is not None or sort is not None:
        response["meta"] = jsonable_encoder({"filter": filter or {}, "sort": sort or {}})
    return response


def error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    """Error envelope used by the exception handlers in main.py."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details,
        },
    }
