from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(UTC)


class AppBaseModel(PydanticBaseModel):
    """Base model for all domain models."""

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
    )


class FrozenCamelModel(AppBaseModel):
    """Immutable model serialized with camelCase field names.

    Used for the ontology snapshot so that the exported document keeps the
    `parentId` / `childIds` / `rootIds` / `updatedAt` spelling.
    """

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
        frozen=True,
        alias_generator=to_camel,
    )


class TimestampedModel(AppBaseModel):
    """Base model with timestamp fields."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime | None = None
