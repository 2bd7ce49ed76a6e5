"""
Raw event table: one row per source-system occurrence of an event.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


class RawEvent(SQLModel, table=True):
    """A source system's record of an event, before de-duplication."""

    __tablename__ = "ops_raw_events"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("source", "source_id", name="_raw_event_source_uc"),
    )

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        description="Stable raw event ID",
    )
    source: str = Field(..., index=True, max_length=50)
    source_id: str = Field(..., max_length=255, description="ID within the source")
    title: str = Field(..., description="Event title as the source reports it")
    description: Optional[str] = None
    start_date: date = Field(..., index=True)
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(default=None, max_length=64)
    end_time: Optional[str] = Field(default=None, max_length=64)
    location: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[int] = Field(
        default=None, description="Canonical resource ID, if the source knows it"
    )
    contact_person: Optional[str] = None
    external_reservation_id: Optional[str] = Field(
        default=None,
        index=True,
        max_length=255,
        description="Reservation ID shared across sources",
    )
    recurring_pattern: Optional[str] = Field(
        default=None, max_length=64, description="Day-of-week codes, e.g. 'T,R'"
    )
    raw_data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON),
        description="Source payload passthrough",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When this row was first ingested",
    )
    synced_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When this row was last written by a sync",
    )
