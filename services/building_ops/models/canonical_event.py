"""
Canonical (aggregated) event table.

Rows are written by the aggregator, but most columns belong to the
operations teams and are edited through the portal. The aggregator only
rewrites the fields listed in ``AGGREGATOR_OWNED_FIELDS``.
"""

import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from services.building_ops.models.enums import EventStatus, EventType

# Columns rewritten on every aggregation run
AGGREGATOR_OWNED_FIELDS = (
    "title",
    "description",
    "start_date",
    "end_date",
    "start_time",
    "end_time",
    "all_day",
    "location",
    "source_events",
    "sources",
)

# Columns the aggregator sets only when it creates the row
AGGREGATOR_INSERT_ONLY_FIELDS = (
    "event_type",
    "primary_source",
    "external_reservation_id",
    "resource_id",
    "recurring_pattern",
)


class CanonicalEvent(SQLModel, table=True):
    """The de-duplicated, user-facing event."""

    __tablename__ = "ops_events"  # type: ignore[assignment]

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
    )
    title: str
    description: Optional[str] = None
    start_date: date = Field(..., index=True)
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(default=None, max_length=64)
    end_time: Optional[str] = Field(default=None, max_length=64)
    all_day: bool = Field(default=False)
    location: Optional[str] = None
    resource_id: Optional[int] = Field(default=None, index=True)
    event_type: str = Field(default=EventType.OTHER.value, max_length=50)
    recurring_pattern: Optional[str] = Field(default=None, max_length=64)
    external_reservation_id: Optional[str] = Field(default=None, max_length=255)

    # Team assignments
    needs_program_director: bool = Field(default=False)
    needs_office: bool = Field(default=False)
    needs_it: bool = Field(default=False)
    needs_security: bool = Field(default=False)
    needs_facilities: bool = Field(default=False)

    # Team notes
    program_director_notes: Optional[str] = None
    office_notes: Optional[str] = None
    it_notes: Optional[str] = None
    security_notes: Optional[str] = None
    facilities_notes: Optional[str] = None
    general_notes: Optional[str] = None

    # Status
    status: str = Field(default=EventStatus.ACTIVE.value, max_length=20)
    is_hidden: bool = Field(default=False)
    has_conflict: bool = Field(default=False)
    conflict_ok: bool = Field(default=False)
    conflict_notes: Optional[str] = None

    # Source linkage
    source_events: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON),
        description="Raw event IDs merged into this event",
    )
    primary_source: Optional[str] = Field(default=None, max_length=50)
    sources: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON),
        description="Distinct sources contributing to this event",
    )

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
