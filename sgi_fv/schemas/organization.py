from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Organization(BaseModel):
    """Organization (tenant) normalized from whatever table layout the backend has."""
    id: str = Field(..., description="Organization id")
    name: str = Field(..., description="Display name")
    slug: Optional[str] = Field(None)
    active: Optional[bool] = Field(None, description="Active flag, when the table has one")
    created_at: Optional[datetime] = Field(None)
    subscription_expires_at: Optional[datetime] = Field(None)

    @field_validator("created_at", "subscription_expires_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v):
        if v is None or isinstance(v, datetime):
            return v
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None


class OrganizationCreate(BaseModel):
    """Create organization payload."""
    name: str = Field(..., description="Organization name")


class OrganizationStatusUpdate(BaseModel):
    """Explicit target state; omitted means toggle the current one."""
    active: Optional[bool] = Field(None)


class OrganizationList(BaseModel):
    """Organizations and the schema they were found in."""
    organizations: list[Organization] = Field(default_factory=list)
    resolved_schema: Optional[str] = Field(None)


class OrganizationRead(BaseModel):
    """Result of a write on an organization."""
    organization: Organization
    resolved_schema: Optional[str] = Field(None)
    message: str = Field(..., description="User-facing confirmation")


class OrganizationInsight(BaseModel):
    """Per-organization client and process counts."""
    id: str
    name: str
    clients_count: int = Field(0, ge=0)
    process_count: int = Field(0, ge=0)
    bar_percent: int = Field(0, ge=0, le=100, description="Clients relative to the largest organization")
