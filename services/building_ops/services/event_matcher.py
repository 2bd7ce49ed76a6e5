"""
Pairwise decision: do two raw events describe the same real event?

Only events on the same start date are ever compared. A shared external
reservation ID is trusted outright; otherwise a weighted score over title
similarity, location/resource agreement and start time decides.
"""

from dataclasses import dataclass
from typing import Optional

from services.building_ops.core.normalizer import normalize_text, parse_time_to_minutes
from services.building_ops.core.similarity import similarity
from services.building_ops.schemas.events import RawEventRecord

TITLE_WEIGHT = 0.6
LOCATION_WEIGHT = 0.25
TIME_WEIGHT = 0.15
LOCATION_SIMILARITY_THRESHOLD = 0.5
MATCH_THRESHOLD = 0.5


@dataclass(frozen=True)
class MatchResult:
    match: bool
    confidence: float


NO_MATCH = MatchResult(match=False, confidence=0.0)
EXACT_MATCH = MatchResult(match=True, confidence=1.0)


def locations_or_resources_agree(a: RawEventRecord, b: RawEventRecord) -> bool:
    """
    Same place: similar location text, identical resource text, or both
    resolved to the same canonical resource.
    """
    if a.location and b.location:
        if similarity(a.location, b.location) > LOCATION_SIMILARITY_THRESHOLD:
            return True
    if a.resource and b.resource:
        if normalize_text(a.resource) == normalize_text(b.resource):
            return True
    return a.resource_id is not None and a.resource_id == b.resource_id


def start_times_agree(time_a: Optional[str], time_b: Optional[str]) -> bool:
    """
    Missing times are not held against a match. Present times must denote
    the same minute, compared as text when either one does not parse.
    """
    if not time_a or not time_b:
        return True
    minutes_a = parse_time_to_minutes(time_a)
    minutes_b = parse_time_to_minutes(time_b)
    if minutes_a is not None and minutes_b is not None:
        return minutes_a == minutes_b
    return normalize_text(time_a) == normalize_text(time_b)


def should_match(a: RawEventRecord, b: RawEventRecord) -> MatchResult:
    if a.start_date != b.start_date:
        return NO_MATCH

    if (
        a.external_reservation_id
        and b.external_reservation_id
        and a.external_reservation_id == b.external_reservation_id
    ):
        return EXACT_MATCH

    confidence = similarity(a.title, b.title) * TITLE_WEIGHT
    if locations_or_resources_agree(a, b):
        confidence += LOCATION_WEIGHT
    if start_times_agree(a.start_time, b.start_time):
        confidence += TIME_WEIGHT

    confidence = min(confidence, 1.0)
    return MatchResult(match=confidence >= MATCH_THRESHOLD, confidence=confidence)
