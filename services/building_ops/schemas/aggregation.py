"""
Result schemas for aggregation and conflict detection runs.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class UpsertFailure(BaseModel):
    """A canonical event that could not be written during a run."""

    source_key: str = Field(..., description="Sorted, comma-joined raw event IDs")
    error: str


class AggregationResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
    raw_events_processed: int = 0
    clusters: int = 0
    events_created: int = 0
    events_updated: int = 0
    events_failed: int = 0
    failures: List[UpsertFailure] = Field(default_factory=list)
    duration_ms: int = 0


class ConflictDetectionResult(BaseModel):
    success: bool = True
    events_checked: int = 0
    conflicting_pairs: int = 0
    conflicts_flagged: int = Field(
        default=0, description="Distinct events marked as conflicting by this run"
    )
    newly_flagged: int = Field(
        default=0, description="Events that were not already marked before this run"
    )
    duration_ms: int = 0


class AggregationRunResponse(AggregationResult):
    """Aggregation followed by conflict detection, as the scheduler runs it."""

    conflicts_flagged: int = 0
