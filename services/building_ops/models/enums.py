"""
Enumerations shared by the Building Ops models and schemas.
"""

from enum import Enum


class EventSource(str, Enum):
    """Systems that feed raw events into the portal."""

    BIGQUERY_GROUP = "bigquery_group"
    BIGQUERY_RESOURCE = "bigquery_resource"
    CALENDAR_STAFF = "calendar_staff"
    CALENDAR_LS = "calendar_ls"
    CALENDAR_MS = "calendar_ms"
    MANUAL = "manual"


class EventType(str, Enum):
    PROGRAM_EVENT = "program_event"
    MEETING = "meeting"
    ASSEMBLY = "assembly"
    FIELD_TRIP = "field_trip"
    PERFORMANCE = "performance"
    ATHLETIC = "athletic"
    PARENT_EVENT = "parent_event"
    PROFESSIONAL_DEVELOPMENT = "professional_development"
    RELIGIOUS_OBSERVANCE = "religious_observance"
    FUNDRAISER = "fundraiser"
    OTHER = "other"


class MatchType(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class EventStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class AliasType(str, Enum):
    """How an alias was derived from its resource."""

    VERACROSS_ID = "veracross_id"
    DESCRIPTION = "description"
    ABBREVIATION = "abbreviation"
    LOCATION = "location"
    CUSTOM = "custom"
