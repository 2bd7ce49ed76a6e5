"""
Explicit links between canonical events and raw events.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from services.building_ops.models.enums import MatchType


class EventMatch(SQLModel, table=True):
    __tablename__ = "ops_event_matches"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("event_id", "raw_event_id", name="_event_raw_event_uc"),
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: str = Field(..., index=True, foreign_key="ops_events.id")
    raw_event_id: str = Field(..., index=True, foreign_key="ops_raw_events.id")
    match_type: str = Field(default=MatchType.AUTO.value, max_length=20)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    matched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    matched_by: Optional[str] = Field(default=None, max_length=255)
