"""
Typed views of the per-source raw payloads.

Each sync stores the source system's record as ``raw_data``. The shapes
differ per source, so they are modelled as a union discriminated on
``source``. Only the fields the engine reads are declared; everything else
is kept as extra attributes so new upstream fields pass through untouched.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from services.common.logging_config import get_logger

logger = get_logger(__name__)


class SourcePayloadBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    source: str

    def event_type_hint(self) -> Optional[str]:
        """The source's own classification of the event, if it has one."""
        value = (self.model_extra or {}).get("event_type")
        return value if isinstance(value, str) else None

    def foreign_reservation(self) -> Dict[str, Any]:
        """Payload fields as a plain mapping for the resource resolver."""
        return self.model_dump(exclude={"source"}, exclude_none=True)


class BigQueryGroupPayload(SourcePayloadBase):
    """Group event export (program events, meetings, assemblies)."""

    source: Literal["bigquery_group"]
    event_type: Optional[str] = None
    group_id: Optional[str] = None
    reservation_id: Optional[str] = None

    def event_type_hint(self) -> Optional[str]:
        return self.event_type


class BigQueryResourcePayload(SourcePayloadBase):
    """Room/resource reservation export."""

    source: Literal["bigquery_resource"]
    resource_id: Optional[int] = None
    resource_description: Optional[str] = None
    reservation_id: Optional[str] = None


class CalendarPayload(SourcePayloadBase):
    """Google Calendar event from one of the synced school calendars."""

    source: Literal["calendar_staff", "calendar_ls", "calendar_ms"]
    calendar_id: Optional[str] = None
    html_link: Optional[str] = None
    organizer_email: Optional[str] = None


class ManualPayload(SourcePayloadBase):
    """Self-service request entered through the portal."""

    source: Literal["manual"]
    requested_by: Optional[str] = None
    requested_at: Optional[datetime] = None


SourcePayload = Annotated[
    Union[
        BigQueryGroupPayload, BigQueryResourcePayload, CalendarPayload, ManualPayload
    ],
    Field(discriminator="source"),
]

_payload_adapter = TypeAdapter(SourcePayload)


def validate_source_payload(
    source: str, raw_data: Optional[Mapping[str, Any]]
) -> SourcePayloadBase:
    """Parse ``raw_data`` as the payload variant for ``source``; raises on mismatch."""
    return _payload_adapter.validate_python({**(raw_data or {}), "source": source})


def parse_source_payload(
    source: str, raw_data: Optional[Mapping[str, Any]]
) -> SourcePayloadBase:
    """
    Lenient variant of ``validate_source_payload`` for stored rows.

    Rows written directly by sync jobs may not match the declared shape;
    those are returned untyped so the rest of the record is still usable.
    """
    try:
        return validate_source_payload(source, raw_data)
    except PydanticValidationError as e:
        logger.warning(
            f"Stored {source} payload does not match its declared shape",
            error_count=e.error_count(),
        )
        return SourcePayloadBase.model_validate({**(raw_data or {}), "source": source})
