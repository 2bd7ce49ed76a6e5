"""
Process-wide engine objects and the FastAPI dependencies that hand them out.

The event store and the resource resolver are shared by every request; the
resolver owns the alias cache, so there must only be one per process.
"""

from services.building_ops.database import get_async_session_factory
from services.building_ops.services.aggregator import EventAggregator
from services.building_ops.services.alias_service import AliasService
from services.building_ops.services.availability_service import AvailabilityService
from services.building_ops.services.conflict_detector import ConflictDetector
from services.building_ops.services.event_store import EventStore, SQLEventStore
from services.building_ops.services.ingest_service import IngestService
from services.building_ops.services.match_service import MatchService
from services.building_ops.services.resource_resolver import ResourceResolver
from services.building_ops.settings import get_settings

_event_store: EventStore | None = None
_resource_resolver: ResourceResolver | None = None


def get_event_store() -> EventStore:
    global _event_store
    if _event_store is None:
        _event_store = SQLEventStore(get_async_session_factory())
    return _event_store


def get_resource_resolver() -> ResourceResolver:
    global _resource_resolver
    if _resource_resolver is None:
        _resource_resolver = ResourceResolver(
            get_event_store().load_alias_map,
            ttl_seconds=get_settings().alias_cache_ttl_seconds,
        )
    return _resource_resolver


def reset_dependencies() -> None:
    """Forget the shared store and resolver (used on shutdown and in tests)."""
    global _event_store, _resource_resolver
    _event_store = None
    _resource_resolver = None


def get_event_aggregator() -> EventAggregator:
    settings = get_settings()
    return EventAggregator(
        get_event_store(),
        get_resource_resolver(),
        concurrency=settings.upsert_concurrency,
        max_attempts=settings.upsert_max_attempts,
        retry_base_delay=settings.upsert_retry_base_delay,
    )


def get_conflict_detector() -> ConflictDetector:
    return ConflictDetector(get_event_store())


def get_availability_service() -> AvailabilityService:
    return AvailabilityService(
        get_event_store(),
        warning_gap_minutes=get_settings().availability_warning_gap_minutes,
    )


def get_match_service() -> MatchService:
    return MatchService(
        get_event_store(), suggestion_limit=get_settings().suggestion_limit
    )


def get_alias_service() -> AliasService:
    return AliasService(get_event_store(), get_resource_resolver())


def get_ingest_service() -> IngestService:
    return IngestService(get_event_store())
