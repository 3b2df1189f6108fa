"""
Response envelope models shared by every API endpoint.

Success bodies look like ``{"success": true, "data": ..., "message": ...,
"meta": {"timestamp", "request_id", "pagination"}}``; error bodies replace
``data`` with ``error: {"code", "message", "details"}``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from starlette.requests import Request

    from namc_portal.core.database.repositories.base import Page

T = TypeVar("T")


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def request_id_of(request: Optional["Request"]) -> Optional[str]:
    if request is None:
        return None
    return getattr(request.state, "request_id", None)


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page: "Page") -> "PaginationMeta":
        return cls(
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )


class ResponseMeta(BaseModel):
    timestamp: str = Field(default_factory=iso_timestamp)
    request_id: Optional[str] = None
    pagination: Optional[PaginationMeta] = None


class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = False
    message: str
    error: ErrorBody
    meta: ResponseMeta = Field(default_factory=ResponseMeta)


def ok(
    data: Any = None,
    *,
    request: Optional["Request"] = None,
    message: Optional[str] = None,
    page: Optional["Page"] = None,
) -> ApiResponse:
    """Build a success envelope, attaching pagination meta when ``page`` is given."""
    meta = ResponseMeta(
        request_id=request_id_of(request),
        pagination=PaginationMeta.from_page(page) if page is not None else None,
    )
    return ApiResponse(data=data, message=message, meta=meta)


def error_payload(
    code: str,
    message: str,
    *,
    details: Any = None,
    request_id: Optional[str] = None,
) -> dict[str, Any]:
    """Serialize an error envelope; ``details`` is dropped when ``None``."""
    body = ErrorResponse(
        message=message,
        error=ErrorBody(code=code, message=message, details=details),
        meta=ResponseMeta(request_id=request_id),
    )
    payload = body.model_dump(mode="json")
    if details is None:
        payload["error"].pop("details", None)
    return payload
