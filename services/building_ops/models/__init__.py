from services.building_ops.models.canonical_event import (
    AGGREGATOR_INSERT_ONLY_FIELDS as AGGREGATOR_INSERT_ONLY_FIELDS,
)
from services.building_ops.models.canonical_event import (
    AGGREGATOR_OWNED_FIELDS as AGGREGATOR_OWNED_FIELDS,
)
from services.building_ops.models.canonical_event import (
    CanonicalEvent as CanonicalEvent,
)
from services.building_ops.models.enums import AliasType as AliasType
from services.building_ops.models.enums import EventSource as EventSource
from services.building_ops.models.enums import EventStatus as EventStatus
from services.building_ops.models.enums import EventType as EventType
from services.building_ops.models.enums import MatchType as MatchType
from services.building_ops.models.event_match import EventMatch as EventMatch
from services.building_ops.models.raw_event import RawEvent as RawEvent
from services.building_ops.models.resource import Resource as Resource
from services.building_ops.models.resource import ResourceAlias as ResourceAlias
