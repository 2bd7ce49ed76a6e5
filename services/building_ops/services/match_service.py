"""
Post-hoc linking of raw events to canonical events.

Suggestions score unlinked raw events dated around a canonical event.
Manual links are stored as EventMatch rows; a raw event may be linked to
at most one canonical event.
"""

from datetime import timedelta
from typing import List, Optional, Set

from services.building_ops.core.intervals import overlap_minutes
from services.building_ops.core.normalizer import parse_time_to_minutes
from services.building_ops.core.resource_matching import locations_match
from services.building_ops.core.similarity import token_similarity
from services.building_ops.models.enums import MatchType
from services.building_ops.schemas.events import CanonicalEventRecord, RawEventRecord
from services.building_ops.schemas.matches import (
    LinkedRawEvent,
    MatchCreateResponse,
    MatchDeleteResponse,
    MatchSuggestion,
    MatchSuggestionsResponse,
)
from services.building_ops.services.event_store import EventStore
from services.common.http_errors import ConflictError, NotFoundError
from services.common.logging_config import get_logger

logger = get_logger(__name__)

SAME_DATE_SCORE = 0.3
SAME_LOCATION_SCORE = 0.3
TIME_OVERLAP_SCORE = 0.2
TITLE_SCORE_WEIGHT = 0.2
TITLE_SIMILARITY_THRESHOLD = 0.3
SUGGESTION_THRESHOLD = 0.3
SEARCH_WINDOW = timedelta(days=1)


def times_overlap(
    start1: Optional[str],
    end1: Optional[str],
    start2: Optional[str],
    end2: Optional[str],
) -> bool:
    minutes = [parse_time_to_minutes(value) for value in (start1, end1, start2, end2)]
    if any(value is None for value in minutes):
        return False
    s1, e1, s2, e2 = minutes
    return overlap_minutes(s1, e1, s2, e2) > 0  # type: ignore[arg-type]


def score_candidate(
    raw: RawEventRecord, event: CanonicalEventRecord
) -> Optional[MatchSuggestion]:
    """Score a raw event as a link for ``event``; None if not worth suggesting."""
    score = 0.0
    reasons: List[str] = []

    if raw.start_date == event.start_date:
        score += SAME_DATE_SCORE
        reasons.append("Same date")

    if locations_match(raw.location or raw.resource, event.location):
        score += SAME_LOCATION_SCORE
        reasons.append("Same location")

    if times_overlap(raw.start_time, raw.end_time, event.start_time, event.end_time):
        score += TIME_OVERLAP_SCORE
        reasons.append("Overlapping time")

    title_similarity = token_similarity(raw.title, event.title)
    if title_similarity > TITLE_SIMILARITY_THRESHOLD:
        score += TITLE_SCORE_WEIGHT * title_similarity
        reasons.append("Similar name")

    if score < SUGGESTION_THRESHOLD or not reasons:
        return None
    return MatchSuggestion(raw_event=raw, confidence=min(score, 1.0), reasons=reasons)


class MatchService:
    def __init__(self, store: EventStore, suggestion_limit: int = 10):
        self.store = store
        self.suggestion_limit = suggestion_limit

    async def _get_event(self, event_id: str) -> CanonicalEventRecord:
        event = await self.store.get_canonical_event(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    async def suggest_matches(self, event_id: str) -> MatchSuggestionsResponse:
        event = await self._get_event(event_id)

        linked: List[LinkedRawEvent] = []
        for match in await self.store.list_matches(event_id):
            raw = await self.store.get_raw_event(match.raw_event_id)
            if raw is None:
                continue
            linked.append(
                LinkedRawEvent(
                    raw_event=raw,
                    match_type=match.match_type,
                    confidence=match.confidence,
                    matched_at=match.matched_at,
                    matched_by=match.matched_by,
                )
            )

        excluded: Set[str] = {item.raw_event.id for item in linked}
        excluded |= await self.store.list_matched_raw_event_ids()
        excluded |= set(event.source_events)

        search_start = event.start_date - SEARCH_WINDOW
        search_end = (event.end_date or event.start_date) + SEARCH_WINDOW
        candidates = await self.store.list_raw_events_between(search_start, search_end)

        suggestions = []
        for raw in candidates:
            if raw.id in excluded:
                continue
            suggestion = score_candidate(raw, event)
            if suggestion is not None:
                suggestions.append(suggestion)

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        logger.info(
            f"Event {event_id}: {len(linked)} linked, "
            f"{len(suggestions)} suggestions from {len(candidates)} candidates"
        )
        return MatchSuggestionsResponse(
            event_id=event_id,
            linked=linked,
            suggestions=suggestions[: self.suggestion_limit],
        )

    async def link(
        self, event_id: str, raw_event_id: str, matched_by: Optional[str] = None
    ) -> MatchCreateResponse:
        await self._get_event(event_id)
        raw = await self.store.get_raw_event(raw_event_id)
        if raw is None:
            raise NotFoundError("Raw event", raw_event_id)

        existing = await self.store.get_match_for_raw_event(raw_event_id)
        if existing is not None and existing.event_id != event_id:
            raise ConflictError(
                "This event is already linked to another ops event",
                details={"existing_event_id": existing.event_id},
            )

        match = await self.store.upsert_match(
            event_id,
            raw_event_id,
            MatchType.MANUAL,
            confidence=1.0,
            matched_by=matched_by or "unknown",
        )
        logger.info(f"Linked raw event {raw_event_id} to event {event_id}")
        return MatchCreateResponse(
            success=True,
            message=f'Linked "{raw.title}" to event',
            match=match,
        )

    async def unlink(self, event_id: str, raw_event_id: str) -> MatchDeleteResponse:
        match = next(
            (
                m
                for m in await self.store.list_matches(event_id)
                if m.raw_event_id == raw_event_id
            ),
            None,
        )
        if match is None:
            raise NotFoundError("Match", f"{event_id}/{raw_event_id}")

        raw = await self.store.get_raw_event(raw_event_id)
        await self.store.delete_match(event_id, raw_event_id)
        logger.info(f"Unlinked raw event {raw_event_id} from event {event_id}")

        title = raw.title if raw is not None else "event"
        return MatchDeleteResponse(
            success=True,
            message=f'Unlinked "{title}" from event',
            was_manual=match.match_type == MatchType.MANUAL.value,
        )
