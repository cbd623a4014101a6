"""Pydantic schemas for activity feed endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ActivityRead(BaseModel):
    id: int = Field(..., description="Identifier assigned by storage")
    user_id: int = Field(..., description="Owner of the activity")
    type: str = Field(..., description="Kind of action performed")
    status: str = Field(..., description="Outcome of the action")
    description: str | None = Field(default=None, description="Human readable summary")
    amount_cents: int | None = Field(default=None, description="Amount in minor units")
    currency: str | None = Field(default=None, description="ISO currency code")
    source: str | None = Field(default=None, description="Channel the action came from")
    ip: str | None = Field(default=None, description="Client network address")
    user_agent: str | None = Field(default=None, description="Client user agent")
    created_at: datetime | None = Field(
        default=None, description="Moment the activity was stored"
    )

    model_config = ConfigDict(from_attributes=True)


class ListingMeta(BaseModel):
    degraded: bool = Field(
        default=False, description="Storage was unavailable and the page is empty"
    )
    estimate: bool = Field(
        default=False, description="The total was estimated instead of counted"
    )
    request_id: str = Field(..., alias="requestId")
    duration_ms: int = Field(..., alias="durationMs")
    error: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class RecentActivityPage(BaseModel):
    page: int
    page_size: int = Field(..., alias="pageSize")
    total: int
    items: list[ActivityRead]
    has_next_page: bool = Field(..., alias="hasNextPage")
    next_page: int | None = Field(default=None, alias="nextPage")
    meta: ListingMeta

    model_config = ConfigDict(populate_by_name=True)


__all__ = ["ActivityRead", "ListingMeta", "RecentActivityPage"]
