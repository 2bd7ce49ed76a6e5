"""
Event aggregator: turns raw events from every source into canonical events.

A run reads raw events from a date forward, groups them by start date,
clusters each date group with the event matcher, elects a primary record
per cluster by source priority, synthesizes one canonical event per
cluster and upserts it keyed on its sorted raw event IDs. Rerunning on
unchanged input updates the same canonical events in place.

Clustering and synthesis are pure functions; only the store reads and the
final upserts do I/O.
"""

import asyncio
import time
import uuid
from datetime import date
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from services.building_ops.core.normalizer import normalize_text
from services.building_ops.errors import AggregationInvariantError, RawEventReadError
from services.building_ops.models.enums import EventSource, EventType
from services.building_ops.schemas.aggregation import AggregationResult, UpsertFailure
from services.building_ops.schemas.events import CanonicalEventDraft, RawEventRecord
from services.building_ops.services.event_matcher import MatchResult, should_match
from services.building_ops.services.event_store import EventStore
from services.building_ops.services.resource_resolver import ResourceResolver
from services.building_ops.utils.retry import RetryError, retry_async
from services.common.http_errors import ErrorCode, ServiceError
from services.common.logging_config import get_logger

logger = get_logger(__name__)

Cluster = List[RawEventRecord]
Matcher = Callable[[RawEventRecord, RawEventRecord], MatchResult]
ClusterStrategy = Callable[[Sequence[RawEventRecord], Matcher], List[Cluster]]

# Most trusted first
SOURCE_PRIORITY: Tuple[EventSource, ...] = (
    EventSource.BIGQUERY_GROUP,
    EventSource.CALENDAR_STAFF,
    EventSource.CALENDAR_LS,
    EventSource.CALENDAR_MS,
    EventSource.BIGQUERY_RESOURCE,
    EventSource.MANUAL,
)
_SOURCE_RANK = {source: rank for rank, source in enumerate(SOURCE_PRIORITY)}

# First matching rule wins
EVENT_TYPE_RULES: Tuple[Tuple[Tuple[str, ...], EventType], ...] = (
    (("meeting",), EventType.MEETING),
    (("assembly",), EventType.ASSEMBLY),
    (("field trip",), EventType.FIELD_TRIP),
    (("performance", "concert", "play"), EventType.PERFORMANCE),
    (("game", "sports", "athletic"), EventType.ATHLETIC),
    (("parent", "family"), EventType.PARENT_EVENT),
    (
        ("pd", "professional development", "training"),
        EventType.PROFESSIONAL_DEVELOPMENT,
    ),
    (("shabbat", "holiday", "tefillah"), EventType.RELIGIOUS_OBSERVANCE),
    (("fundraiser", "gala", "auction"), EventType.FUNDRAISER),
)

EVENT_TYPE_HINT_RULES: Tuple[Tuple[str, EventType], ...] = (
    ("program", EventType.PROGRAM_EVENT),
    ("meeting", EventType.MEETING),
)


# Clustering


def group_by_date(
    raw_events: Sequence[RawEventRecord],
) -> Dict[date, List[RawEventRecord]]:
    """Group raw events by start date, keeping input order within each group."""
    groups: Dict[date, List[RawEventRecord]] = {}
    for raw in raw_events:
        groups.setdefault(raw.start_date, []).append(raw)
    return groups


def cluster_by_seed_match(
    events: Sequence[RawEventRecord], matcher: Matcher = should_match
) -> List[Cluster]:
    """
    Greedy single-pass clustering against the seed.

    Each not-yet-clustered event seeds a new cluster, which then takes every
    later unclustered event that matches the seed. Members are never compared
    with each other, so A~B and B~C with A!~C puts C in its own cluster.
    """
    clustered: Set[str] = set()
    clusters: List[Cluster] = []

    for index, seed in enumerate(events):
        if seed.id in clustered:
            continue
        cluster = [seed]
        clustered.add(seed.id)
        for candidate in events[index + 1 :]:
            if candidate.id in clustered:
                continue
            if matcher(seed, candidate).match:
                cluster.append(candidate)
                clustered.add(candidate.id)
        clusters.append(cluster)

    return clusters


def cluster_transitive(
    events: Sequence[RawEventRecord], matcher: Matcher = should_match
) -> List[Cluster]:
    """
    Connected components over all pairwise matches.

    Clusters come out ordered by their earliest member, members in input order.
    """
    parent = list(range(len(events)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(len(events)):
        for j in range(i + 1, len(events)):
            if find(i) == find(j):
                continue
            if matcher(events[i], events[j]).match:
                parent[max(find(i), find(j))] = min(find(i), find(j))

    components: Dict[int, Cluster] = {}
    for i, raw in enumerate(events):
        components.setdefault(find(i), []).append(raw)
    return list(components.values())


# Synthesis


def source_rank(source: Any) -> int:
    try:
        return _SOURCE_RANK[EventSource(source)]
    except ValueError:
        return len(SOURCE_PRIORITY)


def by_priority(cluster: Sequence[RawEventRecord]) -> List[RawEventRecord]:
    """Members most trusted first; members of one source keep cluster order."""
    return sorted(cluster, key=lambda raw: source_rank(raw.source))


def elect_primary(cluster: Sequence[RawEventRecord]) -> RawEventRecord:
    """Highest-priority member; ties go to the earlier member."""
    if not cluster:
        raise ValueError("Cannot elect a primary record from an empty cluster")
    return by_priority(cluster)[0]


def first_non_null(members: Sequence[RawEventRecord], field: str) -> Any:
    """Value of ``field`` from the first member that has one (empty strings skipped)."""
    for member in members:
        value = getattr(member, field)
        if value is not None and value != "":
            return value
    return None


def determine_event_type(primary: RawEventRecord) -> str:
    title = normalize_text(primary.title)
    for keywords, event_type in EVENT_TYPE_RULES:
        if any(keyword in title for keyword in keywords):
            return event_type.value

    hint = normalize_text(primary.payload.event_type_hint())
    if hint:
        for keyword, event_type in EVENT_TYPE_HINT_RULES:
            if keyword in hint:
                return event_type.value
    return EventType.OTHER.value


def synthesize_canonical(cluster: Sequence[RawEventRecord]) -> CanonicalEventDraft:
    """
    Build the canonical event for one cluster.

    Title and type come from the primary record. Every other field comes
    from the most trusted member that supplies it, so lower-priority
    members only fill gaps.
    """
    if not cluster:
        raise ValueError("Cannot synthesize a canonical event from an empty cluster")
    ranked = by_priority(cluster)
    primary = ranked[0]

    start_time = first_non_null(ranked, "start_time")
    location = first_non_null(ranked, "location") or first_non_null(
        ranked, "resource"
    )

    return CanonicalEventDraft(
        title=primary.title,
        description=first_non_null(ranked, "description"),
        start_date=primary.start_date,
        end_date=primary.end_date or primary.start_date,
        start_time=start_time,
        end_time=first_non_null(ranked, "end_time"),
        all_day=start_time is None,
        location=location,
        event_type=determine_event_type(primary),
        source_events=[raw.id for raw in cluster],
        primary_source=primary.source.value,
        sources=list(dict.fromkeys(raw.source.value for raw in cluster)),
        external_reservation_id=first_non_null(ranked, "external_reservation_id"),
        resource_id=first_non_null(ranked, "resource_id"),
        recurring_pattern=first_non_null(ranked, "recurring_pattern"),
    )


def build_drafts(
    raw_events: Sequence[RawEventRecord],
    cluster_strategy: ClusterStrategy = cluster_by_seed_match,
    matcher: Matcher = should_match,
) -> Tuple[List[CanonicalEventDraft], int]:
    """Cluster and synthesize every date group. Returns (drafts, cluster count)."""
    drafts: List[CanonicalEventDraft] = []
    for events in group_by_date(raw_events).values():
        for cluster in cluster_strategy(events, matcher):
            drafts.append(synthesize_canonical(cluster))
    return drafts, len(drafts)


def check_disjoint(drafts: Sequence[CanonicalEventDraft]) -> None:
    """Raise if any raw event contributes to more than one draft."""
    owner: Dict[str, str] = {}
    for draft in drafts:
        for raw_id in draft.source_events:
            previous = owner.get(raw_id)
            if previous is not None and previous != draft.source_key:
                raise AggregationInvariantError(
                    f"Raw event {raw_id} was assigned to more than one canonical event",
                    details={
                        "raw_event_id": raw_id,
                        "source_keys": [previous, draft.source_key],
                    },
                )
            owner[raw_id] = draft.source_key


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class EventAggregator:
    """Runs one aggregation pass against an event store."""

    def __init__(
        self,
        store: EventStore,
        resolver: Optional[ResourceResolver] = None,
        cluster_strategy: ClusterStrategy = cluster_by_seed_match,
        concurrency: int = 5,
        max_attempts: int = 3,
        retry_base_delay: float = 0.2,
    ):
        self.store = store
        self.resolver = resolver
        self.cluster_strategy = cluster_strategy
        self.concurrency = max(1, concurrency)
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay

    async def run(self, from_date: date) -> AggregationResult:
        started = time.monotonic()
        logger.info(f"Starting event aggregation from {from_date}")

        try:
            raw_events = await self.store.list_raw_events(from_date)
        except Exception as e:
            duration_ms = _elapsed_ms(started)
            logger.error(
                f"Failed to read raw events from {from_date}: {e}", exc_info=True
            )
            raise RawEventReadError(
                f"Failed to read raw events: {e}",
                duration_ms=duration_ms,
                details={"from_date": from_date.isoformat()},
            ) from e

        if not raw_events:
            logger.info("No raw events to aggregate")
            return AggregationResult(
                success=True,
                message="No events to aggregate",
                duration_ms=_elapsed_ms(started),
            )

        raw_events = await self._resolve_resources(raw_events)
        drafts, clusters = build_drafts(raw_events, self.cluster_strategy)
        check_disjoint(drafts)

        try:
            existing = await self.store.list_canonical_events(from_date)
        except Exception as e:
            logger.error(f"Failed to read canonical events: {e}", exc_info=True)
            raise ServiceError(
                f"Failed to read canonical events: {e}",
                details={"duration_ms": _elapsed_ms(started)},
                code=ErrorCode.DATABASE_ERROR,
            ) from e
        existing_by_key = {
            event.source_key: event.id for event in existing if event.source_events
        }

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(
                self._upsert(draft, existing_by_key.get(draft.source_key), semaphore)
                for draft in drafts
            )
        )

        failures = [failure for _, failure in outcomes if failure is not None]
        created = sum(1 for outcome, _ in outcomes if outcome == "created")
        updated = sum(1 for outcome, _ in outcomes if outcome == "updated")
        duration_ms = _elapsed_ms(started)

        logger.info(
            f"Aggregation finished: {len(raw_events)} raw events, {clusters} clusters, "
            f"{created} created, {updated} updated, {len(failures)} failed "
            f"in {duration_ms}ms"
        )
        return AggregationResult(
            success=True,
            message=(
                f"Aggregated {len(raw_events)} raw events into {clusters} events"
                + (f" ({len(failures)} failed)" if failures else "")
            ),
            raw_events_processed=len(raw_events),
            clusters=clusters,
            events_created=created,
            events_updated=updated,
            events_failed=len(failures),
            failures=failures,
            duration_ms=duration_ms,
        )

    async def _resolve_resources(
        self, raw_events: List[RawEventRecord]
    ) -> List[RawEventRecord]:
        """Copies of the raw events with resolvable resource IDs filled in."""
        if self.resolver is None:
            return raw_events

        resolved: List[RawEventRecord] = []
        for raw in raw_events:
            if raw.resource_id is not None:
                resolved.append(raw)
                continue
            try:
                resource_id = await self.resolver.resolve_raw_event(raw)
            except Exception as e:
                logger.error(f"Failed to load resource aliases: {e}", exc_info=True)
                raise ServiceError(
                    f"Failed to load resource aliases: {e}",
                    code=ErrorCode.DATABASE_ERROR,
                ) from e
            if resource_id is None:
                resolved.append(raw)
            else:
                resolved.append(raw.model_copy(update={"resource_id": resource_id}))
        return resolved

    async def _upsert(
        self,
        draft: CanonicalEventDraft,
        existing_id: Optional[str],
        semaphore: asyncio.Semaphore,
    ) -> Tuple[str, Optional[UpsertFailure]]:
        # One ID for every attempt, so a retry after a committed insert is a no-op
        new_id = str(uuid.uuid4())

        async def write() -> str:
            if existing_id is not None:
                await self.store.update_canonical(existing_id, draft)
                return "updated"
            await self.store.insert_canonical(draft, event_id=new_id)
            return "created"

        async with semaphore:
            try:
                outcome = await retry_async(
                    write,
                    max_attempts=self.max_attempts,
                    base_delay=self.retry_base_delay,
                    label=f"Upsert of canonical event {draft.source_key}",
                )
                return outcome, None
            except RetryError as e:
                error = str(e.last_exception)
            except Exception as e:
                error = str(e)

        logger.error(f"Failed to upsert canonical event {draft.source_key}: {error}")
        return "failed", UpsertFailure(source_key=draft.source_key, error=error)
