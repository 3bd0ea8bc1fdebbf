"""
Standard API response helpers for consistent response envelopes:

- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error:   { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }

A transition that still needs operator input is a success envelope with
data.outcome == "needs_input" and data.missing listing the inputs to collect.
"""
from typing import Any
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error detail structure."""
    code: str = Field(..., description="Error code (e.g., 'notfound', 'illegaltransition')")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail = Field(..., description="Error details")


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (pagination, warnings, etc.)
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return StandardErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details)
    ).model_dump()


def paginated_response(items: list[Any], limit: int, offset: int = 0, total: int | None = None) -> dict[str, Any]:
    """
    Slice `items` into one page and wrap it with pagination metadata.

    Returns:
        dict: { "success": true, "data": <page>, "meta": { "limit", "offset", "total", "hasMore" } }
    """
    if total is None:
        total = len(items)
    page = items[offset:offset + limit]
    meta = {
        "limit": limit,
        "offset": offset,
        "total": total,
        "hasMore": (offset + limit) < total,
    }
    return success_response(data=page, meta=meta)
