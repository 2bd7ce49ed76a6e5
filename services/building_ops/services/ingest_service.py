"""
Write paths for the sync collaborators: raw events and resources.
"""

from services.building_ops.schemas.events import (
    RawEventIngestRequest,
    RawEventIngestResponse,
)
from services.building_ops.schemas.resources import (
    ResourceListResponse,
    ResourceSyncRequest,
    ResourceSyncResponse,
)
from services.building_ops.services.event_store import EventStore
from services.common.logging_config import get_logger

logger = get_logger(__name__)


class IngestService:
    def __init__(self, store: EventStore):
        self.store = store

    async def ingest_raw_events(
        self, request: RawEventIngestRequest
    ) -> RawEventIngestResponse:
        sources = sorted({event.source.value for event in request.events})
        created, updated = await self.store.upsert_raw_events(request.events)
        logger.info(
            f"Ingested {len(request.events)} raw events from {', '.join(sources)}: "
            f"{created} created, {updated} updated"
        )
        return RawEventIngestResponse(
            success=True,
            received=len(request.events),
            created=created,
            updated=updated,
        )

    async def sync_resources(
        self, request: ResourceSyncRequest
    ) -> ResourceSyncResponse:
        created, updated = await self.store.upsert_resources(request.resources)
        logger.info(f"Synced resources: {created} created, {updated} updated")
        return ResourceSyncResponse(success=True, created=created, updated=updated)

    async def list_resources(self) -> ResourceListResponse:
        resources = await self.store.list_resources()
        return ResourceListResponse(resources=resources, total=len(resources))
