from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.building_ops.auth import service_permission_required
from services.building_ops.dependencies import get_availability_service
from services.building_ops.schemas.availability import AvailabilityResponse
from services.building_ops.services.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/check", response_model=AvailabilityResponse)
async def check_availability(
    resource_id: int = Query(..., description="Resource to check"),
    on_date: date = Query(..., alias="date", description="Date to check"),
    start_time: str = Query(
        ..., min_length=1, description="Requested start, e.g. 09:00"
    ),
    end_time: str = Query(..., min_length=1, description="Requested end, e.g. 10:00"),
    exclude_event_id: Optional[str] = Query(
        None, description="Event being edited, left out of the check"
    ),
    availability_service: AvailabilityService = Depends(get_availability_service),
    client: str = Depends(service_permission_required(["check_availability"])),
) -> AvailabilityResponse:
    """Check whether a resource is free for a time slot on a date."""
    return await availability_service.check_availability(
        resource_id=resource_id,
        on_date=on_date,
        start_time=start_time,
        end_time=end_time,
        exclude_event_id=exclude_event_id,
    )
