from typing import List, Literal, Optional

from pydantic import BaseModel


class AvailabilityIssue(BaseModel):
    """An existing event that blocks, or sits close to, the requested slot."""

    type: Literal["conflict", "warning"]
    event_id: str
    title: str
    start_time: str
    end_time: str
    message: str


class AvailabilityResponse(BaseModel):
    resource_id: int
    date: str
    start_time: str
    end_time: str
    available: bool
    conflicts: List[AvailabilityIssue]
    warnings: List[AvailabilityIssue]
    excluded_event_id: Optional[str] = None
