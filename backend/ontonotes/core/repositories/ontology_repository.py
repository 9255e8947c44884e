from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ontonotes.core.models.ontology import OntologyTree


class OntologyRepository(ABC):
    """Durable storage for the ontology snapshot.

    A single logical key holds the whole tree; every save replaces it
    wholesale. Implementations perform I/O and expose async methods that
    raise `PersistenceError` when the store fails.
    """

    @abstractmethod
    async def load_tree(self) -> OntologyTree | None:  # pragma: no cover - interface only
        """Return the stored tree, or None if nothing has been saved yet."""

    @abstractmethod
    async def save_tree(self, tree: OntologyTree) -> None:  # pragma: no cover
        """Persist `tree`, replacing any previous snapshot."""
