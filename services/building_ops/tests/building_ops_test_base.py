"""
Record builders shared by Building Ops Service tests.
"""

from datetime import date
from typing import Any, List

from services.building_ops.models.enums import EventSource
from services.building_ops.schemas.events import (
    CanonicalEventDraft,
    CanonicalEventRecord,
    RawEventRecord,
)

EVENT_DATE = date(2025, 3, 10)


def make_raw_event(
    id: str,
    title: str = "Staff Meeting",
    source: EventSource = EventSource.CALENDAR_STAFF,
    start_date: date = EVENT_DATE,
    **fields: Any,
) -> RawEventRecord:
    """Build a raw event record without touching the database."""
    return RawEventRecord(
        id=id,
        source=source,
        source_id=fields.pop("source_id", f"{source.value}-{id}"),
        title=title,
        start_date=start_date,
        **fields,
    )


def make_canonical_event(
    id: str,
    title: str = "Staff Meeting",
    start_date: date = EVENT_DATE,
    **fields: Any,
) -> CanonicalEventRecord:
    fields.setdefault("event_type", "meeting")
    fields.setdefault("status", "active")
    return CanonicalEventRecord(id=id, title=title, start_date=start_date, **fields)


def make_draft(
    raw_ids: List[str], title: str = "Staff Meeting", **fields: Any
) -> CanonicalEventDraft:
    """Canonical event draft as the aggregator would synthesize it."""
    fields.setdefault("start_date", EVENT_DATE)
    fields.setdefault("all_day", fields.get("start_time") is None)
    fields.setdefault("event_type", "meeting")
    fields.setdefault("primary_source", EventSource.CALENDAR_STAFF.value)
    fields.setdefault("sources", [fields["primary_source"]])
    return CanonicalEventDraft(title=title, source_events=raw_ids, **fields)
