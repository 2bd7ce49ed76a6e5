from fastapi import APIRouter, Body, Depends

from services.building_ops.auth import service_permission_required
from services.building_ops.dependencies import get_ingest_service
from services.building_ops.schemas.events import (
    RawEventIngestRequest,
    RawEventIngestResponse,
)
from services.building_ops.services.ingest_service import IngestService

router = APIRouter(prefix="/raw-events", tags=["raw-events"])


@router.post("", response_model=RawEventIngestResponse)
async def ingest_raw_events(
    request: RawEventIngestRequest = Body(...),
    ingest_service: IngestService = Depends(get_ingest_service),
    client: str = Depends(service_permission_required(["write_raw_events"])),
) -> RawEventIngestResponse:
    """
    Upsert raw events from a sync job or a self-service request.

    Records are keyed on (source, source_id); re-sending one overwrites it.
    The whole batch is validated before anything is written.
    """
    return await ingest_service.ingest_raw_events(request)
