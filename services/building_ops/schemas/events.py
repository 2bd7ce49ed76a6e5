"""
Raw and canonical event schemas.

``RawEventRecord`` and ``CanonicalEventRecord`` are the detached views the
event store hands to the engine; nothing in the engine holds a database
session or a live ORM row.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from services.building_ops.models.canonical_event import (
    AGGREGATOR_INSERT_ONLY_FIELDS,
    AGGREGATOR_OWNED_FIELDS,
)
from services.building_ops.models.enums import EventSource
from services.building_ops.schemas.sources import (
    SourcePayloadBase,
    parse_source_payload,
    validate_source_payload,
)


class RawEventRecord(BaseModel):
    """A raw event as read from the store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    source: EventSource
    source_id: str
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[int] = None
    contact_person: Optional[str] = None
    external_reservation_id: Optional[str] = None
    recurring_pattern: Optional[str] = None
    raw_data: Dict[str, Any] = Field(default_factory=dict)
    synced_at: Optional[datetime] = None

    @property
    def payload(self) -> SourcePayloadBase:
        return parse_source_payload(self.source.value, self.raw_data)


class RawEventIn(BaseModel):
    """A raw event submitted by a sync job or a self-service request."""

    source: EventSource
    source_id: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(default=None, max_length=64)
    end_time: Optional[str] = Field(default=None, max_length=64)
    location: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[int] = None
    contact_person: Optional[str] = None
    external_reservation_id: Optional[str] = Field(default=None, max_length=255)
    recurring_pattern: Optional[str] = Field(default=None, max_length=64)
    raw_data: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_consistency(self) -> "RawEventIn":
        if not self.title.strip():
            raise ValueError("title must not be blank")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        try:
            validate_source_payload(self.source.value, self.raw_data)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValueError(
                f"raw_data does not match the {self.source.value} payload: "
                f"{location} {first.get('msg', '')}".strip()
            )
        return self


class RawEventIngestRequest(BaseModel):
    events: List[RawEventIn] = Field(..., min_length=1, max_length=5000)


class RawEventIngestResponse(BaseModel):
    success: bool = True
    received: int
    created: int
    updated: int


class CanonicalEventRecord(BaseModel):
    """A canonical event as read from the store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False
    location: Optional[str] = None
    resource_id: Optional[int] = None
    event_type: str
    recurring_pattern: Optional[str] = None
    external_reservation_id: Optional[str] = None

    needs_program_director: bool = False
    needs_office: bool = False
    needs_it: bool = False
    needs_security: bool = False
    needs_facilities: bool = False
    program_director_notes: Optional[str] = None
    office_notes: Optional[str] = None
    it_notes: Optional[str] = None
    security_notes: Optional[str] = None
    facilities_notes: Optional[str] = None
    general_notes: Optional[str] = None

    status: str
    is_hidden: bool = False
    has_conflict: bool = False
    conflict_ok: bool = False
    conflict_notes: Optional[str] = None

    source_events: List[str] = Field(default_factory=list)
    primary_source: Optional[str] = None
    sources: List[str] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def source_key(self) -> str:
        return source_key(self.source_events)


class CanonicalEventDraft(BaseModel):
    """A canonical event synthesized from one cluster of raw events."""

    title: str
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool
    location: Optional[str] = None
    event_type: str
    source_events: List[str]
    primary_source: str
    sources: List[str]
    external_reservation_id: Optional[str] = None
    resource_id: Optional[int] = None
    recurring_pattern: Optional[str] = None

    @property
    def source_key(self) -> str:
        return source_key(self.source_events)

    def owned_fields(self) -> Dict[str, Any]:
        """Fields rewritten when this draft updates an existing event."""
        return self.model_dump(mode="python", include=set(AGGREGATOR_OWNED_FIELDS))

    def insert_fields(self) -> Dict[str, Any]:
        """Fields for a brand-new event row."""
        return self.model_dump(
            mode="python",
            include=set(AGGREGATOR_OWNED_FIELDS) | set(AGGREGATOR_INSERT_ONLY_FIELDS),
        )


class CanonicalEventListResponse(BaseModel):
    events: List[CanonicalEventRecord]
    total: int
    success: bool = True


def source_key(source_event_ids: List[str]) -> str:
    """Upsert identity of a canonical event: sorted, comma-joined raw event IDs."""
    return ",".join(sorted(source_event_ids))
