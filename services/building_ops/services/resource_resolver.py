"""
Resource resolver: maps external room names and IDs to local resource IDs.

Resolution is an exact lookup of the normalized text in the alias table;
there is no substring or fuzzy matching at this layer. Texts that do not
resolve are logged so an admin can add the missing alias. Name-based
fallbacks live in ``core.resource_matching`` and are only used by callers
that explicitly opt into them.

The alias table is cached in-process as an immutable snapshot. Refreshing
builds a new snapshot and swaps the reference, so concurrent readers never
see a half-built map. Once the TTL has passed, readers keep getting the old
snapshot while a single background task loads the new one. Only the very
first load (or the first after ``invalidate()``) makes callers wait.
"""

import asyncio
import time
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional

from services.building_ops.core.normalizer import normalize_text
from services.building_ops.core.resource_matching import parse_foreign_resource_field
from services.building_ops.schemas.events import RawEventRecord
from services.common.logging_config import get_logger

logger = get_logger(__name__)

AliasLoader = Callable[[], Awaitable[Mapping[str, int]]]

DEFAULT_TTL_SECONDS = 300.0


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class ResourceResolver:
    """Exact alias lookup over a TTL-refreshed, immutable snapshot."""

    def __init__(
        self,
        load_aliases: AliasLoader,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._load_aliases = load_aliases
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[Mapping[str, int]] = None
        self._loaded_at = 0.0
        self._generation = 0
        self._lock = asyncio.Lock()
        self._refresh_task: Optional[asyncio.Task] = None

    # Cache management

    def invalidate(self) -> None:
        """Drop the snapshot so the next lookup reloads aliases before answering."""
        self._generation += 1
        self._snapshot = None
        logger.info("Resource alias cache invalidated")

    async def snapshot(self) -> Mapping[str, int]:
        """Current alias map; schedules a background refresh once it is stale."""
        current = self._snapshot
        if current is None:
            return await self._load_now()
        if self._clock() - self._loaded_at >= self._ttl_seconds:
            self._schedule_refresh()
        return current

    async def _load_now(self) -> Mapping[str, int]:
        async with self._lock:
            current = self._snapshot
            if current is None:
                current = await self._reload()
            return current

    async def _reload(self) -> Mapping[str, int]:
        generation = self._generation
        aliases = await self._load_aliases()
        snapshot = MappingProxyType(dict(aliases))
        if generation != self._generation:
            # invalidate() ran while loading; this data may predate the write
            logger.debug("Not caching alias snapshot loaded before invalidation")
            return snapshot
        self._snapshot = snapshot
        self._loaded_at = self._clock()
        logger.info(f"Loaded {len(snapshot)} resource aliases")
        return snapshot

    def _schedule_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._background_refresh()
        )

    async def _background_refresh(self) -> None:
        try:
            async with self._lock:
                await self._reload()
        except Exception as e:
            logger.error(
                f"Resource alias refresh failed, serving previous snapshot: {e}",
                exc_info=True,
            )

    # Lookups

    async def resolve(self, text: Optional[str]) -> Optional[int]:
        """Resource ID for an exact (normalized) alias match, else None."""
        normalized = normalize_text(text)
        if not normalized:
            return None
        resource_id = (await self.snapshot()).get(normalized)
        if resource_id is None:
            logger.debug(f"No resource alias for '{normalized}'")
        return resource_id

    async def resolve_foreign_id(self, foreign_id: Any) -> Optional[int]:
        """Validate a reservation-system resource ID against the alias table."""
        value = _as_int(foreign_id)
        if value is None:
            return None
        return (await self.snapshot()).get(str(value))

    async def resolve_foreign_reservation(
        self, record: Mapping[str, Any]
    ) -> Optional[int]:
        """
        Resolve the resource of a foreign reservation record.

        A numeric resource ID, when present, is the only thing consulted:
        if it does not resolve, the answer is None. Text is tried only for
        records without one, so similarly named rooms cannot be confused.
        """
        info = parse_foreign_resource_field(record)
        if info.id is not None:
            resolved = await self.resolve_foreign_id(info.id)
            if resolved is None:
                logger.debug(f"Foreign resource ID {info.id} is not a known resource")
            return resolved

        description = record.get("resource_description")
        text = (
            description
            if isinstance(description, str) and description
            else info.name
        )
        return await self.resolve(text)

    async def resolve_class_schedule_room(
        self, room: Optional[Mapping[str, Any]]
    ) -> Optional[int]:
        """Match a class schedule room on description or name, abbreviation, then ID."""
        if not room:
            return None

        resolved = await self.resolve(room.get("description") or room.get("name"))
        if resolved is not None:
            return resolved

        if room.get("abbreviation"):
            resolved = await self.resolve(room["abbreviation"])
            if resolved is not None:
                return resolved

        if room.get("id") is not None:
            return await self.resolve_foreign_id(room["id"])
        return None

    async def does_reservation_match_resource(
        self, record: Mapping[str, Any], resource_id: int
    ) -> bool:
        return await self.resolve_foreign_reservation(record) == resource_id

    async def resolve_raw_event(self, raw: RawEventRecord) -> Optional[int]:
        """
        Best resource ID for a raw event.

        Uses the ID the source supplied, then the payload's reservation
        fields, then the event's resource text, then its location text.
        """
        if raw.resource_id is not None:
            return raw.resource_id

        record = dict(raw.payload.foreign_reservation())
        if raw.resource and "resource" not in record:
            record["resource"] = raw.resource
        resolved = await self.resolve_foreign_reservation(record)
        if resolved is not None:
            return resolved
        if parse_foreign_resource_field(record).id is not None:
            return None
        return await self.resolve(raw.location)
