from __future__ import annotations

from pydantic import Field, field_validator

from ontonotes.core.models.base import AppBaseModel
from ontonotes.core.models.note import Note, NoteStatus  # noqa: TCH001


class SearchFilter(AppBaseModel):
    """Transient query state for note lookups.

    - tags: selected concept labels, expanded through the ontology before matching
    - status: only notes with this status
    - values / fields: key match (case-insensitive) with a substring value match
    - query: free text matched against title and content
    """

    query: str = Field(default="", description="Free-text query")
    tags: list[str] | None = None
    status: NoteStatus | None = None
    values: dict[str, str] | None = None
    fields: dict[str, str] | None = None

    @field_validator("query", mode="before")
    @classmethod
    def none_as_empty(cls, v: str | None) -> str:
        return v or ""

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        cleaned = [t.strip() for t in v if t and t.strip()]
        return cleaned or None


class SimilarityMatch(AppBaseModel):
    """A note ranked by content-embedding proximity to a target."""

    note: Note
    similarity: float = Field(..., ge=-1.0, le=1.0)
    shared_tags: list[str] = Field(default_factory=list)
