"""
Rooms/resources and the alias table used to resolve them.

Resource IDs are not generated here: they are the reservation system's
own resource IDs, so a reservation's numeric resource ID can be compared
directly against this table.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Resource(SQLModel, table=True):
    __tablename__ = "ops_resources"  # type: ignore[assignment]

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    resource_type: Optional[str] = Field(default=None, max_length=100)
    description: str = Field(..., description="Display name, e.g. '101 Beit Midrash'")
    abbreviation: Optional[str] = Field(default=None, max_length=50)
    capacity: Optional[int] = None
    responsible_person: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ResourceAlias(SQLModel, table=True):
    """A known synonym (name, abbreviation, foreign ID) for a resource."""

    __tablename__ = "ops_resource_aliases"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("alias_type", "alias_value", name="_alias_type_value_uc"),
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    resource_id: int = Field(..., index=True, foreign_key="ops_resources.id")
    alias_type: str = Field(..., max_length=50)
    alias_value: str = Field(..., max_length=255, description="Lowercased, trimmed")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
