from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ontonotes.core.models.note import Note


class NoteRepository(ABC):
    """Read access to the note collection owned by the surrounding app.

    The search engine only reads notes and attaches embeddings to them.
    """

    @abstractmethod
    async def get(self, note_id: str) -> Note | None:  # pragma: no cover - interface only
        """Fetch a note by id or return None if not found."""

    @abstractmethod
    async def list(self, *, limit: int | None = None) -> Sequence[Note]:  # pragma: no cover
        """Return notes, most recently updated first."""

    @abstractmethod
    async def update_embedding(self, note_id: str, embedding: list[float]) -> bool:  # pragma: no cover
        """Store an embedding for a note. Return False if the note does not exist."""
