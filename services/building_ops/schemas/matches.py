"""
Schemas for canonical-to-raw event links and match suggestions.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from services.building_ops.schemas.events import RawEventRecord


class EventMatchRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    event_id: str
    raw_event_id: str
    match_type: str
    confidence: float
    matched_at: datetime
    matched_by: Optional[str] = None


class LinkedRawEvent(BaseModel):
    """A raw event already linked to a canonical event, with link metadata."""

    raw_event: RawEventRecord
    match_type: str
    confidence: float
    matched_at: datetime
    matched_by: Optional[str] = None


class MatchSuggestion(BaseModel):
    raw_event: RawEventRecord
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasons: List[str]


class MatchSuggestionsResponse(BaseModel):
    event_id: str
    linked: List[LinkedRawEvent]
    suggestions: List[MatchSuggestion]


class MatchCreateRequest(BaseModel):
    raw_event_id: str = Field(..., min_length=1)
    matched_by: Optional[str] = Field(default=None, max_length=255)


class MatchCreateResponse(BaseModel):
    success: bool = True
    message: str
    match: EventMatchRecord


class MatchDeleteResponse(BaseModel):
    success: bool = True
    message: str
    was_manual: bool
