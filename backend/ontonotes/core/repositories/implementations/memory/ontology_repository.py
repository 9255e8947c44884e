from __future__ import annotations

from typing import TYPE_CHECKING

from ontonotes.core.errors import ImportFormatError, PersistenceError
from ontonotes.core.repositories.ontology_repository import OntologyRepository
from ontonotes.core.services.ontology_store import export_to_json, import_from_json

if TYPE_CHECKING:
    from ontonotes.core.models.ontology import OntologyTree


class InMemoryOntologyRepository(OntologyRepository):
    """Process-local key-value store holding the serialized snapshot.

    Trees go through the same JSON document format used for export so the
    stored value is independent of the in-memory model.
    """

    def __init__(self, key: str = "tree") -> None:
        self._key = key
        self._store: dict[str, str] = {}

    async def load_tree(self) -> OntologyTree | None:
        payload = self._store.get(self._key)
        if payload is None:
            return None
        try:
            return import_from_json(payload)
        except ImportFormatError as err:
            raise PersistenceError(f"Stored ontology snapshot is corrupt: {err.message}") from err

    async def save_tree(self, tree: OntologyTree) -> None:
        self._store[self._key] = export_to_json(tree, indent=None)

    def clear(self) -> None:
        self._store.pop(self._key, None)
