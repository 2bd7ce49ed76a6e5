"""
Batch entry points the scheduler calls: aggregation and conflict detection.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.building_ops.auth import service_permission_required
from services.building_ops.dependencies import (
    get_conflict_detector,
    get_event_aggregator,
)
from services.building_ops.schemas.aggregation import (
    AggregationRunResponse,
    ConflictDetectionResult,
)
from services.building_ops.services.aggregator import EventAggregator
from services.building_ops.services.conflict_detector import ConflictDetector
from services.building_ops.settings import get_settings
from services.building_ops.utils.dates import school_today
from services.common.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["aggregation"])


def resolve_from_date(from_date: Optional[date]) -> date:
    return from_date or school_today(get_settings().school_timezone)


@router.post("/aggregation/run", response_model=AggregationRunResponse)
async def run_aggregation(
    from_date: Optional[date] = Query(
        None, description="First start date to aggregate (defaults to today)"
    ),
    detect_conflicts: bool = Query(
        True, description="Run conflict detection after the upserts"
    ),
    aggregator: EventAggregator = Depends(get_event_aggregator),
    conflict_detector: ConflictDetector = Depends(get_conflict_detector),
    client: str = Depends(service_permission_required(["run_aggregation"])),
) -> AggregationRunResponse:
    """Aggregate raw events into canonical events, then flag conflicts."""
    start = resolve_from_date(from_date)
    logger.info(f"Aggregation requested by {client} from {start}")

    result = await aggregator.run(start)
    conflicts_flagged = 0
    if detect_conflicts:
        conflicts = await conflict_detector.run(start)
        conflicts_flagged = conflicts.conflicts_flagged

    return AggregationRunResponse(
        **result.model_dump(),
        conflicts_flagged=conflicts_flagged,
    )


@router.post("/conflicts/detect", response_model=ConflictDetectionResult)
async def run_conflict_detection(
    from_date: Optional[date] = Query(
        None, description="First start date to check (defaults to today)"
    ),
    conflict_detector: ConflictDetector = Depends(get_conflict_detector),
    client: str = Depends(service_permission_required(["run_conflicts"])),
) -> ConflictDetectionResult:
    start = resolve_from_date(from_date)
    logger.info(f"Conflict detection requested by {client} from {start}")
    return await conflict_detector.run(start)
