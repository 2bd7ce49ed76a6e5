"""
Event store: the only persistence boundary the engine talks to.

``EventStore`` is a small document-store style interface (filter, get,
upsert, insert) over the five Building Ops collections. ``SQLEventStore``
implements it on the SQLModel tables. Every call opens its own session,
so concurrent upserts from the aggregator never share one.

All reads return detached pydantic records, never live ORM rows.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.building_ops.models import (
    CanonicalEvent,
    EventMatch,
    MatchType,
    RawEvent,
    Resource,
    ResourceAlias,
)
from services.building_ops.schemas.events import (
    CanonicalEventDraft,
    CanonicalEventRecord,
    RawEventIn,
    RawEventRecord,
)
from services.building_ops.schemas.matches import EventMatchRecord
from services.building_ops.schemas.resources import ResourceAliasRecord, ResourceRecord
from services.common.http_errors import NotFoundError
from services.common.logging_config import get_logger

logger = get_logger(__name__)


class EventStore(ABC):
    """Persistence interface used by the aggregation and conflict engine."""

    # Raw events

    @abstractmethod
    async def list_raw_events(self, from_date: date) -> List[RawEventRecord]:
        """Raw events starting on or after ``from_date``, in stable read order."""

    @abstractmethod
    async def get_raw_event(self, raw_event_id: str) -> Optional[RawEventRecord]: ...

    @abstractmethod
    async def list_raw_events_between(
        self, start: date, end: date
    ) -> List[RawEventRecord]: ...

    @abstractmethod
    async def upsert_raw_events(self, records: Sequence[RawEventIn]) -> Tuple[int, int]:
        """Write raw events keyed on (source, source_id). Returns (created, updated)."""

    # Canonical events

    @abstractmethod
    async def list_canonical_events(
        self, from_date: date, include_hidden: bool = True
    ) -> List[CanonicalEventRecord]: ...

    @abstractmethod
    async def list_canonical_events_on(
        self, on_date: date
    ) -> List[CanonicalEventRecord]: ...

    @abstractmethod
    async def get_canonical_event(
        self, event_id: str
    ) -> Optional[CanonicalEventRecord]: ...

    @abstractmethod
    async def insert_canonical(
        self, draft: CanonicalEventDraft, event_id: Optional[str] = None
    ) -> CanonicalEventRecord:
        """
        Insert a new canonical event.

        With an ``event_id``, inserting again after a write that did commit
        returns the stored row instead of creating a second one.
        """

    @abstractmethod
    async def update_canonical(
        self, event_id: str, draft: CanonicalEventDraft
    ) -> CanonicalEventRecord:
        """Overwrite only the aggregator-owned fields of an existing event."""

    @abstractmethod
    async def flag_conflicts(self, event_ids: Iterable[str], note: str) -> int:
        """Mark events as conflicting, never clearing a flag.

        Returns how many events were newly flagged.
        """

    # Matches

    @abstractmethod
    async def list_matches(self, event_id: str) -> List[EventMatchRecord]: ...

    @abstractmethod
    async def get_match_for_raw_event(
        self, raw_event_id: str
    ) -> Optional[EventMatchRecord]: ...

    @abstractmethod
    async def upsert_match(
        self,
        event_id: str,
        raw_event_id: str,
        match_type: MatchType,
        confidence: float,
        matched_by: Optional[str],
    ) -> EventMatchRecord: ...

    @abstractmethod
    async def delete_match(self, event_id: str, raw_event_id: str) -> bool: ...

    @abstractmethod
    async def list_matched_raw_event_ids(self) -> Set[str]: ...

    # Resources and aliases

    @abstractmethod
    async def list_resources(self) -> List[ResourceRecord]: ...

    @abstractmethod
    async def get_resource(self, resource_id: int) -> Optional[ResourceRecord]: ...

    @abstractmethod
    async def upsert_resources(
        self, records: Sequence[ResourceRecord]
    ) -> Tuple[int, int]: ...

    @abstractmethod
    async def list_aliases(
        self, resource_id: Optional[int] = None
    ) -> List[ResourceAliasRecord]: ...

    @abstractmethod
    async def upsert_alias(
        self,
        resource_id: int,
        alias_type: str,
        alias_value: str,
        overwrite: bool = True,
    ) -> Tuple[ResourceAliasRecord, bool]:
        """Upsert an alias on (alias_type, alias_value); returns (alias, created)."""

    @abstractmethod
    async def load_alias_map(self) -> Dict[str, int]:
        """All aliases as ``alias_value -> resource_id``."""


class SQLEventStore(EventStore):
    """EventStore over the SQLModel tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # Raw events

    async def list_raw_events(self, from_date: date) -> List[RawEventRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RawEvent)
                .where(RawEvent.start_date >= from_date)  # type: ignore[arg-type]
                .order_by(
                    RawEvent.start_date,  # type: ignore[arg-type]
                    RawEvent.created_at,  # type: ignore[arg-type]
                    RawEvent.id,  # type: ignore[arg-type]
                )
            )
            return [RawEventRecord.model_validate(row) for row in result.scalars()]

    async def get_raw_event(self, raw_event_id: str) -> Optional[RawEventRecord]:
        async with self._session_factory() as session:
            row = await session.get(RawEvent, raw_event_id)
            return RawEventRecord.model_validate(row) if row else None

    async def list_raw_events_between(
        self, start: date, end: date
    ) -> List[RawEventRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RawEvent)
                .where(
                    RawEvent.start_date >= start,  # type: ignore[arg-type]
                    RawEvent.start_date <= end,  # type: ignore[arg-type]
                )
                .order_by(RawEvent.start_date, RawEvent.id)  # type: ignore[arg-type]
            )
            return [RawEventRecord.model_validate(row) for row in result.scalars()]

    async def upsert_raw_events(self, records: Sequence[RawEventIn]) -> Tuple[int, int]:
        created = updated = 0
        async with self._session_factory() as session:
            try:
                for record in records:
                    result = await session.execute(
                        select(RawEvent).where(
                            RawEvent.source == record.source.value,  # type: ignore[arg-type]
                            RawEvent.source_id == record.source_id,  # type: ignore[arg-type]
                        )
                    )
                    existing = result.scalar_one_or_none()
                    values = record.model_dump(exclude={"source"})
                    if existing is None:
                        session.add(RawEvent(source=record.source.value, **values))
                        created += 1
                    else:
                        for field, value in values.items():
                            setattr(existing, field, value)
                        existing.synced_at = datetime.now(timezone.utc)
                        updated += 1
                    # Same (source, source_id) twice in one batch must hit the row above
                    await session.flush()
                await session.commit()
            except Exception as e:
                logger.error(f"Error upserting raw events: {e}")
                await session.rollback()
                raise
        return created, updated

    # Canonical events

    async def list_canonical_events(
        self, from_date: date, include_hidden: bool = True
    ) -> List[CanonicalEventRecord]:
        async with self._session_factory() as session:
            query = select(CanonicalEvent).where(
                CanonicalEvent.start_date >= from_date  # type: ignore[arg-type]
            )
            if not include_hidden:
                query = query.where(
                    CanonicalEvent.is_hidden == False  # type: ignore[arg-type]  # noqa: E712
                )
            query = query.order_by(
                CanonicalEvent.start_date,  # type: ignore[arg-type]
                CanonicalEvent.start_time,  # type: ignore[arg-type]
                CanonicalEvent.id,  # type: ignore[arg-type]
            )
            result = await session.execute(query)
            return [
                CanonicalEventRecord.model_validate(row) for row in result.scalars()
            ]

    async def list_canonical_events_on(
        self, on_date: date
    ) -> List[CanonicalEventRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CanonicalEvent)
                .where(CanonicalEvent.start_date == on_date)  # type: ignore[arg-type]
                .order_by(
                    CanonicalEvent.start_time,  # type: ignore[arg-type]
                    CanonicalEvent.id,  # type: ignore[arg-type]
                )
            )
            return [
                CanonicalEventRecord.model_validate(row) for row in result.scalars()
            ]

    async def get_canonical_event(
        self, event_id: str
    ) -> Optional[CanonicalEventRecord]:
        async with self._session_factory() as session:
            row = await session.get(CanonicalEvent, event_id)
            return CanonicalEventRecord.model_validate(row) if row else None

    async def insert_canonical(
        self, draft: CanonicalEventDraft, event_id: Optional[str] = None
    ) -> CanonicalEventRecord:
        async with self._session_factory() as session:
            try:
                if event_id is not None:
                    stored = await session.get(CanonicalEvent, event_id)
                    if stored is not None:
                        logger.info(
                            f"Canonical event {event_id} for {draft.source_key} "
                            "was already inserted"
                        )
                        return CanonicalEventRecord.model_validate(stored)
                    event = CanonicalEvent(id=event_id, **draft.insert_fields())
                else:
                    event = CanonicalEvent(**draft.insert_fields())
                session.add(event)
                await session.commit()
                await session.refresh(event)
                return CanonicalEventRecord.model_validate(event)
            except Exception as e:
                logger.error(f"Error inserting canonical event {draft.source_key}: {e}")
                await session.rollback()
                raise

    async def update_canonical(
        self, event_id: str, draft: CanonicalEventDraft
    ) -> CanonicalEventRecord:
        async with self._session_factory() as session:
            try:
                event = await session.get(CanonicalEvent, event_id)
                if event is None:
                    raise NotFoundError("Event", event_id)
                for field, value in draft.owned_fields().items():
                    setattr(event, field, value)
                event.updated_at = datetime.now(timezone.utc)
                await session.commit()
                await session.refresh(event)
                return CanonicalEventRecord.model_validate(event)
            except Exception as e:
                logger.error(f"Error updating canonical event {event_id}: {e}")
                await session.rollback()
                raise

    async def flag_conflicts(self, event_ids: Iterable[str], note: str) -> int:
        ids = sorted(set(event_ids))
        if not ids:
            return 0
        newly_flagged = 0
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(CanonicalEvent).where(
                        CanonicalEvent.id.in_(ids)  # type: ignore[union-attr]
                    )
                )
                for event in result.scalars():
                    if not event.has_conflict:
                        newly_flagged += 1
                    event.has_conflict = True
                    if not event.conflict_notes:
                        event.conflict_notes = note
                await session.commit()
            except Exception as e:
                logger.error(f"Error flagging conflicts: {e}")
                await session.rollback()
                raise
        return newly_flagged

    # Matches

    async def list_matches(self, event_id: str) -> List[EventMatchRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EventMatch)
                .where(EventMatch.event_id == event_id)  # type: ignore[arg-type]
                .order_by(EventMatch.matched_at)  # type: ignore[arg-type]
            )
            return [EventMatchRecord.model_validate(row) for row in result.scalars()]

    async def get_match_for_raw_event(
        self, raw_event_id: str
    ) -> Optional[EventMatchRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EventMatch)
                .where(EventMatch.raw_event_id == raw_event_id)  # type: ignore[arg-type]
                .order_by(EventMatch.matched_at)  # type: ignore[arg-type]
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return EventMatchRecord.model_validate(row) if row else None

    async def upsert_match(
        self,
        event_id: str,
        raw_event_id: str,
        match_type: MatchType,
        confidence: float,
        matched_by: Optional[str],
    ) -> EventMatchRecord:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(EventMatch).where(
                        EventMatch.event_id == event_id,  # type: ignore[arg-type]
                        EventMatch.raw_event_id == raw_event_id,  # type: ignore[arg-type]
                    )
                )
                match = result.scalar_one_or_none()
                if match is None:
                    match = EventMatch(event_id=event_id, raw_event_id=raw_event_id)
                    session.add(match)
                match.match_type = match_type.value
                match.confidence = confidence
                match.matched_by = matched_by
                match.matched_at = datetime.now(timezone.utc)
                await session.commit()
                await session.refresh(match)
                return EventMatchRecord.model_validate(match)
            except Exception as e:
                logger.error(f"Error linking {raw_event_id} to {event_id}: {e}")
                await session.rollback()
                raise

    async def delete_match(self, event_id: str, raw_event_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(EventMatch).where(
                    EventMatch.event_id == event_id,  # type: ignore[arg-type]
                    EventMatch.raw_event_id == raw_event_id,  # type: ignore[arg-type]
                )
            )
            await session.commit()
            return bool(result.rowcount)

    async def list_matched_raw_event_ids(self) -> Set[str]:
        async with self._session_factory() as session:
            result = await session.execute(select(EventMatch.raw_event_id))
            return set(result.scalars())

    # Resources and aliases

    async def list_resources(self) -> List[ResourceRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Resource).order_by(Resource.id)  # type: ignore[arg-type]
            )
            return [ResourceRecord.model_validate(row) for row in result.scalars()]

    async def get_resource(self, resource_id: int) -> Optional[ResourceRecord]:
        async with self._session_factory() as session:
            row = await session.get(Resource, resource_id)
            return ResourceRecord.model_validate(row) if row else None

    async def upsert_resources(
        self, records: Sequence[ResourceRecord]
    ) -> Tuple[int, int]:
        created = updated = 0
        async with self._session_factory() as session:
            try:
                for record in records:
                    existing = await session.get(Resource, record.id)
                    values = record.model_dump()
                    if existing is None:
                        session.add(Resource(**values))
                        created += 1
                    else:
                        for field, value in values.items():
                            setattr(existing, field, value)
                        existing.updated_at = datetime.now(timezone.utc)
                        updated += 1
                    await session.flush()
                await session.commit()
            except Exception as e:
                logger.error(f"Error upserting resources: {e}")
                await session.rollback()
                raise
        return created, updated

    async def list_aliases(
        self, resource_id: Optional[int] = None
    ) -> List[ResourceAliasRecord]:
        async with self._session_factory() as session:
            query = select(ResourceAlias)
            if resource_id is not None:
                query = query.where(
                    ResourceAlias.resource_id == resource_id  # type: ignore[arg-type]
                )
            query = query.order_by(
                ResourceAlias.resource_id,  # type: ignore[arg-type]
                ResourceAlias.alias_type,  # type: ignore[arg-type]
                ResourceAlias.alias_value,  # type: ignore[arg-type]
            )
            result = await session.execute(query)
            return [ResourceAliasRecord.model_validate(row) for row in result.scalars()]

    async def upsert_alias(
        self,
        resource_id: int,
        alias_type: str,
        alias_value: str,
        overwrite: bool = True,
    ) -> Tuple[ResourceAliasRecord, bool]:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(ResourceAlias).where(
                        ResourceAlias.alias_type == alias_type,  # type: ignore[arg-type]
                        ResourceAlias.alias_value == alias_value,  # type: ignore[arg-type]
                    )
                )
                alias = result.scalar_one_or_none()
                created = alias is None
                if alias is None:
                    alias = ResourceAlias(
                        resource_id=resource_id,
                        alias_type=alias_type,
                        alias_value=alias_value,
                    )
                    session.add(alias)
                elif overwrite:
                    alias.resource_id = resource_id
                await session.commit()
                await session.refresh(alias)
                return ResourceAliasRecord.model_validate(alias), created
            except Exception as e:
                logger.error(f"Error writing alias {alias_type}:{alias_value}: {e}")
                await session.rollback()
                raise

    async def load_alias_map(self) -> Dict[str, int]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ResourceAlias.alias_value, ResourceAlias.resource_id).order_by(
                    ResourceAlias.id  # type: ignore[arg-type]
                )
            )
            return {
                alias_value: resource_id for alias_value, resource_id in result.all()
            }
