"""
Ad-hoc availability check for one resource and time slot.

Candidates are the visible, non-cancelled canonical events on the date that
are booked on the resource, or that have no resource and whose location
text names it. All-day candidates always conflict. Timed candidates
conflict under the 80% overlap rule; smaller overlaps and near neighbours
are reported as warnings.
"""

from datetime import date
from typing import List, Optional

from services.building_ops.core.intervals import (
    gap_minutes,
    intervals_conflict,
    overlap_minutes,
)
from services.building_ops.core.normalizer import (
    format_minutes_as_display,
    parse_time_to_minutes,
)
from services.building_ops.core.resource_matching import location_fuzzy_match
from services.building_ops.models.enums import EventStatus
from services.building_ops.schemas.availability import (
    AvailabilityIssue,
    AvailabilityResponse,
)
from services.building_ops.schemas.events import CanonicalEventRecord
from services.building_ops.schemas.resources import ResourceRecord
from services.building_ops.services.event_store import EventStore
from services.common.http_errors import NotFoundError, ValidationError
from services.common.logging_config import get_logger

logger = get_logger(__name__)


def _parse_requested_time(value: str, field: str) -> int:
    minutes = parse_time_to_minutes(value)
    if minutes is None:
        raise ValidationError(
            f"Invalid time format for {field}: '{value}'. Use HH:MM",
            field=field,
            value=value,
        )
    return minutes


def is_candidate(
    event: CanonicalEventRecord,
    resource: ResourceRecord,
    exclude_event_id: Optional[str] = None,
) -> bool:
    if event.id == exclude_event_id:
        return False
    if event.is_hidden or event.status == EventStatus.CANCELLED.value:
        return False
    if event.resource_id is not None:
        return event.resource_id == resource.id
    return location_fuzzy_match(
        event.location, resource.description, resource.abbreviation
    )


def classify_event(
    event: CanonicalEventRecord,
    request_start: int,
    request_end: int,
    warning_gap_minutes: int = 15,
) -> List[AvailabilityIssue]:
    """Conflicts and warnings one existing event raises against the requested slot."""
    if event.all_day:
        return [
            AvailabilityIssue(
                type="conflict",
                event_id=event.id,
                title=event.title,
                start_time="All day",
                end_time="",
                message=f"❌ Conflict: {event.title} (All day event)",
            )
        ]

    event_start = parse_time_to_minutes(event.start_time)
    event_end = parse_time_to_minutes(event.end_time)
    if event_start is None or event_end is None:
        logger.debug(f"Skipping event {event.id} with unparseable times")
        return []

    def issue(kind: str, message: str) -> AvailabilityIssue:
        return AvailabilityIssue(
            type=kind,  # type: ignore[arg-type]
            event_id=event.id,
            title=event.title,
            start_time=event.start_time or "",
            end_time=event.end_time or "",
            message=message,
        )

    span = (
        f"{format_minutes_as_display(event_start)}-"
        f"{format_minutes_as_display(event_end)}"
    )
    if intervals_conflict(request_start, request_end, event_start, event_end):
        return [issue("conflict", f"❌ Conflict: {event.title} ({span})")]

    overlap = overlap_minutes(request_start, request_end, event_start, event_end)
    if overlap > 0:
        return [
            issue(
                "warning",
                f"⚠️ Note: {event.title} overlaps by {overlap} min ({span})",
            )
        ]

    warnings = []
    before = gap_minutes(event_end, request_start)
    if before is not None and before <= warning_gap_minutes:
        warnings.append(
            issue("warning", f"⚠️ Note: {event.title} ends {before} min before")
        )
    after = gap_minutes(request_end, event_start)
    if after is not None and after <= warning_gap_minutes:
        warnings.append(
            issue("warning", f"⚠️ Note: {event.title} starts {after} min after")
        )
    return warnings


class AvailabilityService:
    def __init__(self, store: EventStore, warning_gap_minutes: int = 15):
        self.store = store
        self.warning_gap_minutes = warning_gap_minutes

    async def check_availability(
        self,
        resource_id: int,
        on_date: date,
        start_time: str,
        end_time: str,
        exclude_event_id: Optional[str] = None,
    ) -> AvailabilityResponse:
        request_start = _parse_requested_time(start_time, "start_time")
        request_end = _parse_requested_time(end_time, "end_time")
        if request_end <= request_start:
            raise ValidationError(
                "end_time must be after start_time",
                field="end_time",
                value=end_time,
            )

        resource = await self.store.get_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", str(resource_id))

        candidates = [
            event
            for event in await self.store.list_canonical_events_on(on_date)
            if is_candidate(event, resource, exclude_event_id)
        ]

        conflicts: List[AvailabilityIssue] = []
        warnings: List[AvailabilityIssue] = []
        for event in candidates:
            for found in classify_event(
                event, request_start, request_end, self.warning_gap_minutes
            ):
                (conflicts if found.type == "conflict" else warnings).append(found)

        logger.info(
            f"Availability of resource {resource_id} on {on_date} "
            f"{start_time}-{end_time}: {len(candidates)} candidates, "
            f"{len(conflicts)} conflicts, {len(warnings)} warnings"
        )
        return AvailabilityResponse(
            resource_id=resource_id,
            date=on_date.isoformat(),
            start_time=start_time,
            end_time=end_time,
            available=not conflicts,
            conflicts=conflicts,
            warnings=warnings,
            excluded_event_id=exclude_event_id,
        )
