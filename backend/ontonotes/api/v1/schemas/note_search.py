from __future__ import annotations

from datetime import datetime  # noqa: TCH003

from pydantic import Field, field_validator

from ontonotes.config import settings
from ontonotes.core.models.base import AppBaseModel
from ontonotes.core.models.note import NoteStatus  # noqa: TCH001


class NotePublic(AppBaseModel):
    """Note as returned to clients; the embedding vector stays server side."""

    id: str
    title: str
    content: str
    tags: list[str]
    values: dict[str, str]
    fields: dict[str, str]
    status: NoteStatus
    pinned: bool
    archived: bool
    created_at: datetime
    updated_at: datetime | None


class SimilarNotePublic(AppBaseModel):
    note: NotePublic
    similarity: float
    shared_tags: list[str]


class SimilarTextRequest(AppBaseModel):
    text: str = Field(..., min_length=1, max_length=10000, description="Text to find related notes for")
    limit: int = Field(default=settings.similarity_default_limit)

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        return max(1, min(100, v))


class TagSuggestionResponse(AppBaseModel):
    note_id: str
    tags: list[str]
