from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ontonotes.core.errors import OntologyError, PersistenceError
from ontonotes.core.services import ontology_store as store
from ontonotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ontonotes.core.models.ontology import ConceptNode, OntologyTree
    from ontonotes.core.repositories.ontology_repository import OntologyRepository

    TreeObserver = Callable[[OntologyTree], None]


logger = get_logger(__name__)


class OntologyService:
    """Owner of the canonical ontology tree.

    Each mutation computes a new tree with the pure store functions, persists
    it, and only then makes it canonical and notifies observers. Validation
    errors propagate before anything is written; a `PersistenceError` from
    the repository propagates with the canonical tree left unchanged.
    Readers get the current immutable value and never block.
    """

    def __init__(self, repo: OntologyRepository, *, seed_default: bool = False) -> None:
        self._repo = repo
        self._seed_default = seed_default
        self._tree: OntologyTree = store.empty_tree()
        self._loaded = False
        self._observers: list[TreeObserver] = []
        self._write_lock = asyncio.Lock()

    @property
    def tree(self) -> OntologyTree:
        return self._tree

    @property
    def loaded(self) -> bool:
        return self._loaded

    def subscribe(self, observer: TreeObserver) -> Callable[[], None]:
        """Register `observer(tree)` for every committed tree; returns an unsubscribe callable."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    async def load(self) -> OntologyTree:
        """Read the stored tree, creating and persisting the initial one on first launch."""
        async with self._write_lock:
            await self._load_unlocked()
            tree = self._tree
        self._notify(tree)
        return tree

    async def ensure_loaded(self) -> OntologyTree:
        if not self._loaded:
            return await self.load()
        return self._tree

    async def add_concept(
        self,
        label: str,
        parent_id: str | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> ConceptNode:
        node = store.create_node(label, parent_id, attributes)
        await self._commit(lambda tree: store.add_node(tree, node), "concept added", node_id=node.id, label=node.label)
        return node

    async def remove_concept(self, node_id: str) -> OntologyTree:
        return await self._commit(lambda tree: store.remove_node(tree, node_id), "concept removed", node_id=node_id)

    async def update_concept(
        self,
        node_id: str,
        *,
        label: str | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> ConceptNode:
        tree = await self._commit(
            lambda tree: store.update_node(tree, node_id, label=label, attributes=attributes),
            "concept updated",
            node_id=node_id,
        )
        return tree.nodes[node_id]

    async def move_concept(self, node_id: str, new_parent_id: str | None, position: int | None = None) -> OntologyTree:
        return await self._commit(
            lambda tree: store.move_node(tree, node_id, new_parent_id, position),
            "concept moved",
            node_id=node_id,
            new_parent_id=new_parent_id,
            position=position,
        )

    async def import_tree(self, text: str | bytes) -> OntologyTree:
        """Replace the whole tree with a validated document."""
        return await self._commit(lambda _tree: store.import_from_json(text), "ontology imported", replace=True)

    def export_tree(self) -> str:
        return store.export_to_json(self._tree)

    async def clear(self) -> OntologyTree:
        return await self._commit(lambda _tree: store.empty_tree(), "ontology cleared", replace=True)

    async def _commit(
        self,
        mutate: Callable[[OntologyTree], OntologyTree],
        event: str,
        *,
        replace: bool = False,
        **context: object,
    ) -> OntologyTree:
        async with self._write_lock:
            if not self._loaded and not replace:
                await self._load_unlocked()
            try:
                new_tree = mutate(self._tree)
            except OntologyError as err:
                logger.info("Rejected ontology change (%s): %s", event, err, extra=context)
                raise
            try:
                await self._repo.save_tree(new_tree)
            except PersistenceError:
                logger.error("Ontology change not applied (%s): snapshot could not be saved", event, extra=context)
                raise
            self._tree = new_tree
            self._loaded = True
        logger.info("Ontology %s", event, extra={**context, "concepts": len(new_tree)})
        self._notify(new_tree)
        return new_tree

    async def _load_unlocked(self) -> None:
        stored = await self._repo.load_tree()
        if stored is None:
            stored = store.default_ontology() if self._seed_default else store.empty_tree()
            logger.info("No stored ontology found; creating initial tree", extra={"seeded": self._seed_default})
            await self._repo.save_tree(stored)
        self._tree = stored
        self._loaded = True

    def _notify(self, tree: OntologyTree) -> None:
        for observer in list(self._observers):
            try:
                observer(tree)
            except Exception:
                logger.exception("Ontology observer %r failed", observer)
