from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import Field, field_validator

from .base import TimestampedModel


class NoteStatus(str, Enum):
    """Publication status of a note."""

    DRAFT = "draft"
    PUBLISHED = "published"


def normalize_note_tags(tags: list[str]) -> list[str]:
    """Strip tags and drop blanks and case-insensitive duplicates.

    Original casing of the first occurrence is kept; notes reference
    concepts by label, and labels are matched case-insensitively.
    """
    normalized: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        if not isinstance(tag, str):
            continue
        stripped = tag.strip()
        if not stripped or stripped.lower() in seen:
            continue
        seen.add(stripped.lower())
        normalized.append(stripped)
    return normalized


class Note(TimestampedModel):
    """Note as consumed by the search engine.

    Notes are owned by the surrounding application; the ontology core only
    reads them and attaches embeddings.
    """

    id: str = Field(default_factory=lambda: uuid4().hex, description="Unique note identifier")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Plain text or markup content")

    tags: list[str] = Field(default_factory=list, description="Concept labels, e.g. '#AI' or '@Alice'")
    values: dict[str, str] = Field(default_factory=dict, description="Structured key/value annotations")
    fields: dict[str, str] = Field(default_factory=dict, description="Template field values")

    status: NoteStatus = Field(default=NoteStatus.DRAFT, description="Publication status")
    pinned: bool = Field(default=False, description="Pinned notes are listed first")
    archived: bool = Field(default=False, description="Whether note is archived")

    embedding: list[float] | None = Field(
        default=None,
        description="Content embedding vector; None when the provider has not produced one",
    )

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        if not v:
            return v
        return normalize_note_tags(v)

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, v: list[float] | None) -> list[float] | None:
        """An empty vector means the provider produced nothing."""
        if v is not None and len(v) == 0:
            return None
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    @property
    def last_modified(self) -> datetime:
        return self.updated_at or self.created_at
