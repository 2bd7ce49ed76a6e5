"""
Batch conflict detection over canonical events.

Events sharing a start date and a (normalized) location are compared
pairwise. Two events conflict when their time slots overlap by more than
80% of either one's duration. If either event lacks a parseable end time,
identical start times are the only conflict. Flags are only ever set here;
clearing them is a manual action.
"""

import time
from datetime import date
from itertools import combinations
from typing import Dict, List, Sequence, Set, Tuple

from services.building_ops.core.intervals import (
    CONFLICT_OVERLAP_THRESHOLD,
    intervals_conflict,
)
from services.building_ops.core.normalizer import normalize_text, parse_time_to_minutes
from services.building_ops.models.enums import EventStatus
from services.building_ops.schemas.aggregation import ConflictDetectionResult
from services.building_ops.schemas.events import CanonicalEventRecord
from services.building_ops.services.event_store import EventStore
from services.common.logging_config import get_logger

logger = get_logger(__name__)

CONFLICT_NOTE = "Potential scheduling conflict detected"


def events_conflict(
    a: CanonicalEventRecord,
    b: CanonicalEventRecord,
    threshold: float = CONFLICT_OVERLAP_THRESHOLD,
) -> bool:
    start_a = parse_time_to_minutes(a.start_time)
    start_b = parse_time_to_minutes(b.start_time)
    if start_a is None or start_b is None:
        return False

    end_a = parse_time_to_minutes(a.end_time)
    end_b = parse_time_to_minutes(b.end_time)
    if end_a is None or end_b is None:
        return start_a == start_b

    return intervals_conflict(start_a, end_a, start_b, end_b, threshold)


def find_conflicts(
    events: Sequence[CanonicalEventRecord],
) -> List[Tuple[CanonicalEventRecord, CanonicalEventRecord]]:
    """Conflicting pairs among events grouped by (start date, location)."""
    groups: Dict[Tuple[date, str], List[CanonicalEventRecord]] = {}
    for event in events:
        location = normalize_text(event.location)
        if not location:
            continue
        groups.setdefault((event.start_date, location), []).append(event)

    pairs = []
    for members in groups.values():
        if len(members) < 2:
            continue
        for a, b in combinations(members, 2):
            if events_conflict(a, b):
                pairs.append((a, b))
    return pairs


class ConflictDetector:
    def __init__(self, store: EventStore, note: str = CONFLICT_NOTE):
        self.store = store
        self.note = note

    async def run(self, from_date: date) -> ConflictDetectionResult:
        started = time.monotonic()
        logger.info(f"Starting conflict detection from {from_date}")

        events = [
            event
            for event in await self.store.list_canonical_events(
                from_date, include_hidden=False
            )
            if event.status != EventStatus.CANCELLED.value
        ]
        pairs = find_conflicts(events)

        conflicting_ids: Set[str] = set()
        for a, b in pairs:
            logger.info(
                f"Conflict on {a.start_date} at '{a.location}': "
                f"'{a.title}' ({a.id}) and '{b.title}' ({b.id})"
            )
            conflicting_ids.update((a.id, b.id))

        newly_flagged = 0
        if conflicting_ids:
            newly_flagged = await self.store.flag_conflicts(
                sorted(conflicting_ids), self.note
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Conflict detection finished: {len(events)} events checked, "
            f"{len(pairs)} conflicting pairs, {newly_flagged} newly flagged "
            f"in {duration_ms}ms"
        )
        return ConflictDetectionResult(
            success=True,
            events_checked=len(events),
            conflicting_pairs=len(pairs),
            conflicts_flagged=len(conflicting_ids),
            newly_flagged=newly_flagged,
            duration_ms=duration_ms,
        )
