from __future__ import annotations

from typing import TYPE_CHECKING

from ontonotes.core.repositories.note_repository import NoteRepository

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ontonotes.core.models.note import Note


class InMemoryNoteRepository(NoteRepository):
    """Dict-backed note collection for local use and tests."""

    def __init__(self, notes: Iterable[Note] | None = None) -> None:
        self._notes: dict[str, Note] = {n.id: n for n in (notes or [])}

    def add(self, note: Note) -> Note:
        self._notes[note.id] = note
        return note

    async def get(self, note_id: str) -> Note | None:
        return self._notes.get(note_id)

    async def list(self, *, limit: int | None = None) -> Sequence[Note]:
        items = sorted(self._notes.values(), key=lambda n: n.last_modified, reverse=True)
        return items if limit is None else items[:limit]

    async def update_embedding(self, note_id: str, embedding: list[float]) -> bool:
        note = self._notes.get(note_id)
        if note is None:
            return False
        self._notes[note_id] = note.model_copy(update={"embedding": list(embedding)})
        return True
