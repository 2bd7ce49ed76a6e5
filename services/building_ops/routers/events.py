"""
Canonical event reads and raw event linking.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from services.building_ops.auth import service_permission_required
from services.building_ops.dependencies import get_event_store, get_match_service
from services.building_ops.schemas.events import (
    CanonicalEventListResponse,
    CanonicalEventRecord,
)
from services.building_ops.schemas.matches import (
    MatchCreateRequest,
    MatchCreateResponse,
    MatchDeleteResponse,
    MatchSuggestionsResponse,
)
from services.building_ops.services.event_store import EventStore
from services.building_ops.services.match_service import MatchService
from services.building_ops.settings import get_settings
from services.building_ops.utils.dates import school_today
from services.common.http_errors import NotFoundError

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=CanonicalEventListResponse)
async def list_events(
    from_date: Optional[date] = Query(
        None, description="First start date to list (defaults to today)"
    ),
    include_hidden: bool = Query(False, description="Include hidden events"),
    store: EventStore = Depends(get_event_store),
    client: str = Depends(service_permission_required(["read_events"])),
) -> CanonicalEventListResponse:
    start = from_date or school_today(get_settings().school_timezone)
    events = await store.list_canonical_events(start, include_hidden=include_hidden)
    return CanonicalEventListResponse(events=events, total=len(events), success=True)


@router.get("/{event_id}", response_model=CanonicalEventRecord)
async def get_event(
    event_id: str = Path(..., description="Canonical event ID"),
    store: EventStore = Depends(get_event_store),
    client: str = Depends(service_permission_required(["read_events"])),
) -> CanonicalEventRecord:
    event = await store.get_canonical_event(event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return event


@router.get("/{event_id}/matches", response_model=MatchSuggestionsResponse)
async def get_matches(
    event_id: str = Path(..., description="Canonical event ID"),
    match_service: MatchService = Depends(get_match_service),
    client: str = Depends(service_permission_required(["read_matches"])),
) -> MatchSuggestionsResponse:
    """Raw events linked to an event, plus scored suggestions for more."""
    return await match_service.suggest_matches(event_id)


@router.post("/{event_id}/matches", response_model=MatchCreateResponse)
async def create_match(
    event_id: str = Path(..., description="Canonical event ID"),
    request: MatchCreateRequest = Body(...),
    match_service: MatchService = Depends(get_match_service),
    client: str = Depends(service_permission_required(["write_matches"])),
) -> MatchCreateResponse:
    return await match_service.link(
        event_id, request.raw_event_id, matched_by=request.matched_by
    )


@router.delete(
    "/{event_id}/matches/{raw_event_id}", response_model=MatchDeleteResponse
)
async def delete_match(
    event_id: str = Path(..., description="Canonical event ID"),
    raw_event_id: str = Path(..., description="Raw event ID"),
    match_service: MatchService = Depends(get_match_service),
    client: str = Depends(service_permission_required(["write_matches"])),
) -> MatchDeleteResponse:
    return await match_service.unlink(event_id, raw_event_id)
