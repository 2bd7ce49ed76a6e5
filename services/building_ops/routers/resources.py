"""
Resources and their aliases.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from services.building_ops.auth import service_permission_required
from services.building_ops.dependencies import get_alias_service, get_ingest_service
from services.building_ops.schemas.resources import (
    AliasAutoPopulateResponse,
    AliasCreateRequest,
    AliasCreateResponse,
    AliasListResponse,
    ResourceListResponse,
    ResourceSyncRequest,
    ResourceSyncResponse,
)
from services.building_ops.services.alias_service import AliasService
from services.building_ops.services.ingest_service import IngestService

router = APIRouter(tags=["resources"])


@router.get("/resources", response_model=ResourceListResponse)
async def list_resources(
    ingest_service: IngestService = Depends(get_ingest_service),
    client: str = Depends(service_permission_required(["read_resources"])),
) -> ResourceListResponse:
    return await ingest_service.list_resources()


@router.post("/resources", response_model=ResourceSyncResponse)
async def sync_resources(
    request: ResourceSyncRequest = Body(...),
    ingest_service: IngestService = Depends(get_ingest_service),
    client: str = Depends(service_permission_required(["write_resources"])),
) -> ResourceSyncResponse:
    return await ingest_service.sync_resources(request)


@router.get("/resource-aliases", response_model=AliasListResponse)
async def list_aliases(
    resource_id: Optional[int] = Query(
        None, description="Only this resource's aliases"
    ),
    alias_service: AliasService = Depends(get_alias_service),
    client: str = Depends(service_permission_required(["manage_aliases"])),
) -> AliasListResponse:
    return await alias_service.list_aliases(resource_id)


@router.post("/resource-aliases", response_model=AliasCreateResponse)
async def add_alias(
    request: AliasCreateRequest = Body(...),
    alias_service: AliasService = Depends(get_alias_service),
    client: str = Depends(service_permission_required(["manage_aliases"])),
) -> AliasCreateResponse:
    return await alias_service.add_alias(request)


@router.post(
    "/resource-aliases/auto-populate", response_model=AliasAutoPopulateResponse
)
async def auto_populate_aliases(
    alias_service: AliasService = Depends(get_alias_service),
    client: str = Depends(service_permission_required(["manage_aliases"])),
) -> AliasAutoPopulateResponse:
    """Create ID, description and abbreviation aliases for every resource."""
    return await alias_service.auto_populate()
