from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ontonotes.core.errors import ImportFormatError, PersistenceError
from ontonotes.core.repositories.ontology_repository import OntologyRepository
from ontonotes.core.services.ontology_store import export_to_json, import_from_json
from ontonotes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from supabase import Client

    from ontonotes.core.models.ontology import OntologyTree


class SupabaseOntologyRepository(OntologyRepository):
    """Supabase key-value storage for the ontology snapshot.

    Assumes a table with a unique text `key`, a `payload` column (text or
    jsonb) holding the exported document, and an `updated_at` timestamp.
    """

    def __init__(self, client: Client, *, table_name: str = "ontology_snapshots", key: str = "tree") -> None:
        self._client: Client = client
        self._table = table_name
        self._key = key

    async def load_tree(self) -> OntologyTree | None:
        try:
            resp = await self._run(
                lambda: self._client.table(self._table)
                .select("payload")
                .eq("key", self._key)
                .limit(1)
                .execute()
            )
        except Exception as err:
            logger.error("Failed to load ontology snapshot: %s", err, extra={"error_type": type(err).__name__})
            raise PersistenceError(f"Could not load ontology: {err}") from err

        rows: list[dict[str, Any]] = resp.data or []
        if not rows:
            return None

        payload = rows[0].get("payload")
        if payload is None:
            return None
        if not isinstance(payload, str):
            # jsonb columns come back already decoded
            payload = json.dumps(payload)
        try:
            return import_from_json(payload)
        except ImportFormatError as err:
            logger.error("Stored ontology snapshot is invalid: %s", err.message)
            raise PersistenceError(f"Stored ontology snapshot is corrupt: {err.message}") from err

    async def save_tree(self, tree: OntologyTree) -> None:
        row = {
            "key": self._key,
            "payload": export_to_json(tree, indent=None),
            "updated_at": tree.updated_at.isoformat(),
        }
        try:
            await self._run(
                lambda: self._client.table(self._table)
                .upsert(row, on_conflict="key")
                .execute()
            )
        except Exception as err:
            logger.error("Failed to save ontology snapshot: %s", err, extra={"error_type": type(err).__name__})
            raise PersistenceError(f"Could not save ontology: {err}") from err

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        import asyncio
        return await asyncio.to_thread(func)
