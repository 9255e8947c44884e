from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ontonotes.core.errors import PersistenceError
from ontonotes.core.models.note import Note, NoteStatus
from ontonotes.core.repositories.note_repository import NoteRepository
from ontonotes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from supabase import Client


class SupabaseNoteRepository(NoteRepository):
    """Supabase implementation of the NoteRepository.

    Assumes a `notes` table with columns matching the `Note` model fields;
    pgvector embeddings are returned as strings and parsed here.
    """

    def __init__(self, client: Client, *, table_name: str = "notes") -> None:
        self._client: Client = client
        self._table = table_name

    async def get(self, note_id: str) -> Note | None:
        resp = await self._run(
            lambda: self._client.table(self._table)
            .select("*")
            .eq("id", str(note_id))
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def list(self, *, limit: int | None = None) -> Sequence[Note]:
        def _query():
            q = self._client.table(self._table).select("*").order("updated_at", desc=True)
            if limit is not None:
                q = q.limit(limit)
            return q.execute()

        resp = await self._run(_query)
        items = resp.data or []
        return [self._row_to_note(i) for i in items]

    async def update_embedding(self, note_id: str, embedding: list[float]) -> bool:
        resp = await self._run(
            lambda: self._client.table(self._table)
            .update({"embedding": list(embedding)})
            .eq("id", str(note_id))
            .execute()
        )
        return len(resp.data or []) > 0

    async def _run(self, func: Callable[[], Any]) -> Any:
        import asyncio
        try:
            return await asyncio.to_thread(func)
        except Exception as err:
            logger.error("Notes query failed: %s", err, extra={"table": self._table})
            raise PersistenceError(f"Notes storage failed: {err}") from err

    @staticmethod
    def _parse_vector_string(vector_str: str | list | None) -> list[float] | None:
        """Parse vector string from pgvector into list[float].

        pgvector returns vectors as string representations like '[0.1,0.2,0.3]'
        that need to be parsed into Python lists for Pydantic validation.
        """
        if vector_str is None:
            return None
        if isinstance(vector_str, list):
            return [float(x) for x in vector_str]

        try:
            cleaned = vector_str.strip("[]")
            if not cleaned:
                return None
            return [float(x.strip()) for x in cleaned.split(",")]
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse vector string '{vector_str}': {e}")
            return None

    @staticmethod
    def _row_to_note(row: dict[str, Any]) -> Note:
        # Drop columns that are not part of the Note model (user_id, lexeme, rank, ...)
        normalized = {k: v for k, v in row.items() if k in Note.model_fields}

        if "embedding" in normalized:
            normalized["embedding"] = SupabaseNoteRepository._parse_vector_string(normalized["embedding"])

        for key in ("title", "content"):
            if normalized.get(key) is None:
                normalized[key] = ""
        for key in ("values", "fields"):
            if normalized.get(key) is None:
                normalized[key] = {}
        if normalized.get("tags") is None:
            normalized["tags"] = []
        if normalized.get("status") is None:
            normalized["status"] = NoteStatus.DRAFT
        for key in ("pinned", "archived"):
            if normalized.get(key) is None:
                normalized[key] = False
        return Note.model_validate(normalized)
