"""
Resource alias administration.

Every write invalidates the shared resolver so the next lookup sees it.
"""

from typing import List, Optional, Tuple

from services.building_ops.models.enums import AliasType
from services.building_ops.schemas.resources import (
    AliasAutoPopulateResponse,
    AliasCreateRequest,
    AliasCreateResponse,
    AliasListResponse,
    ResourceRecord,
)
from services.building_ops.services.event_store import EventStore
from services.building_ops.services.resource_resolver import ResourceResolver
from services.common.http_errors import NotFoundError
from services.common.logging_config import get_logger

logger = get_logger(__name__)


def derive_aliases(resource: ResourceRecord) -> List[Tuple[AliasType, str]]:
    """Aliases every resource gets: its ID, description and abbreviation."""
    aliases = [(AliasType.VERACROSS_ID, str(resource.id))]
    if resource.description and resource.description.strip():
        aliases.append((AliasType.DESCRIPTION, resource.description.strip().lower()))
    if resource.abbreviation and resource.abbreviation.strip():
        aliases.append(
            (AliasType.ABBREVIATION, resource.abbreviation.strip().lower())
        )
    return aliases


class AliasService:
    def __init__(self, store: EventStore, resolver: ResourceResolver):
        self.store = store
        self.resolver = resolver

    async def list_aliases(
        self, resource_id: Optional[int] = None
    ) -> AliasListResponse:
        aliases = await self.store.list_aliases(resource_id)
        return AliasListResponse(aliases=aliases, total=len(aliases))

    async def add_alias(self, request: AliasCreateRequest) -> AliasCreateResponse:
        if await self.store.get_resource(request.resource_id) is None:
            raise NotFoundError("Resource", str(request.resource_id))

        alias, created = await self.store.upsert_alias(
            request.resource_id, request.alias_type.value, request.alias_value
        )
        self.resolver.invalidate()
        logger.info(
            f"{'Added' if created else 'Updated'} alias "
            f"{alias.alias_type}:'{alias.alias_value}' -> resource {alias.resource_id}"
        )
        return AliasCreateResponse(success=True, alias=alias)

    async def auto_populate(self) -> AliasAutoPopulateResponse:
        """Create derived aliases for every resource, keeping existing ones."""
        resources = await self.store.list_resources()
        considered = created = 0
        try:
            for resource in resources:
                for alias_type, alias_value in derive_aliases(resource):
                    considered += 1
                    _, was_created = await self.store.upsert_alias(
                        resource.id, alias_type.value, alias_value, overwrite=False
                    )
                    if was_created:
                        created += 1
        finally:
            # Partial runs still changed the table
            self.resolver.invalidate()

        message = (
            f"Auto-populated {considered} aliases from {len(resources)} resources"
        )
        logger.info(f"{message} ({created} new)")
        return AliasAutoPopulateResponse(
            success=True,
            message=message,
            resources=len(resources),
            aliases_considered=considered,
            aliases_created=created,
        )
