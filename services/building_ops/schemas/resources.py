"""
Resource and resource-alias schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.building_ops.models.enums import AliasType


class ResourceRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resource_type: Optional[str] = None
    description: str
    abbreviation: Optional[str] = None
    capacity: Optional[int] = None
    responsible_person: Optional[str] = None


class ResourceSyncRequest(BaseModel):
    resources: List[ResourceRecord] = Field(..., min_length=1)


class ResourceSyncResponse(BaseModel):
    success: bool = True
    created: int
    updated: int


class ResourceListResponse(BaseModel):
    resources: List[ResourceRecord]
    total: int


class ResourceAliasRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    resource_id: int
    alias_type: str
    alias_value: str
    created_at: Optional[datetime] = None


class AliasCreateRequest(BaseModel):
    resource_id: int
    alias_type: AliasType
    alias_value: str = Field(..., min_length=1, max_length=255)

    @field_validator("alias_value")
    @classmethod
    def normalize_alias_value(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("alias_value must not be blank")
        return normalized


class AliasListResponse(BaseModel):
    aliases: List[ResourceAliasRecord]
    total: int


class AliasCreateResponse(BaseModel):
    success: bool = True
    alias: ResourceAliasRecord


class AliasAutoPopulateResponse(BaseModel):
    success: bool = True
    message: str
    resources: int
    aliases_considered: int
    aliases_created: int
