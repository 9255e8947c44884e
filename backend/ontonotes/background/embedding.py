from __future__ import annotations

from typing import TYPE_CHECKING

from ontonotes.core.errors import PersistenceError
from ontonotes.core.services.embedding_service import build_note_text, create_embedding
from ontonotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ontonotes.core.repositories.note_repository import NoteRepository

logger = get_logger(__name__)


async def generate_and_store_note_embedding(
    *,
    note_id: str,
    repo: NoteRepository,
    embedder: Callable[[str], Awaitable[list[float] | None]] = create_embedding,
) -> bool:
    """Embed a note's title and content and store the vector, as background work.

    Returns True when a vector was stored. Failures are logged; a note left
    without a vector is simply skipped by similarity ranking.
    """
    note = await repo.get(note_id)
    if note is None:
        logger.warning("Embedding job skipped: note %s not found", note_id)
        return False

    text = build_note_text(note.title, note.content)
    if not text:
        logger.warning("No text content to embed for note %s", note_id)
        return False

    vector = await embedder(text)
    if not vector:
        logger.warning("Failed to generate embedding for note %s", note_id)
        return False

    try:
        stored = await repo.update_embedding(note_id, vector)
    except PersistenceError as err:
        logger.error("Embedding job failed for note %s: %s", note_id, err.message)
        return False
    if stored:
        logger.info("Stored embedding for note %s", note_id, extra={"dimensions": len(vector)})
    return stored
