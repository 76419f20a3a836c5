from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Standard message response."""
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data")


class PageInfo(BaseModel):
    """Pagination state computed over an already-filtered list."""
    page: int = Field(..., ge=1, description="Current page (clamped to the available range)")
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Number of items after filtering")
    start: int = Field(..., ge=0, description="Zero-based index of the first item on the page")
    end: int = Field(..., ge=0, description="Exclusive index of the last item on the page")
    label: str = Field(..., description="Range label, e.g. '1 - 10 de 23 usuários'")
    has_previous: bool = Field(...)
    has_next: bool = Field(...)


class ErrorInfo(BaseModel):
    """Structured error description."""
    type: str = Field(..., description="Machine-readable error type code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Optional error details (e.g., validation issues)")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Standardized API error envelope returned by exception handlers."""
    status: int = Field(..., description="HTTP status code")
    error: ErrorInfo = Field(..., description="Error details")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    org_id: Optional[str] = Field(default=None, description="Organization of the caller (if known)")
    path: Optional[str] = Field(default=None, description="Request path")
    method: Optional[str] = Field(default=None, description="HTTP method")
    timestamp: datetime = Field(..., description="Error timestamp (UTC)")
