from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import numpy as np

from ontonotes.core.errors import NotFoundError
from ontonotes.core.schemas.note_search import SearchFilter, SimilarityMatch
from ontonotes.core.services.embedding_service import build_note_text, create_embedding
from ontonotes.core.services.ontology_store import TAG_PREFIXES
from ontonotes.core.services.semantic_matcher import expand_tags, get_semantic_matches
from ontonotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence

    from ontonotes.core.models.note import Note, NoteStatus
    from ontonotes.core.models.ontology import OntologyTree
    from ontonotes.core.repositories.note_repository import NoteRepository
    from ontonotes.core.services.ontology_service import OntologyService

    Embedder = Callable[[str], Awaitable[list[float] | None]]


logger = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|), clamped to [-1, 1].

    A zero-norm vector on either side, or vectors of different length,
    give 0.0.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or va.shape != vb.shape or va.size == 0:
        return 0.0
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0 or not np.isfinite(norm_a * norm_b):
        return 0.0
    value = float(np.dot(va, vb) / (norm_a * norm_b))
    if not np.isfinite(value):
        return 0.0
    return float(np.clip(value, -1.0, 1.0))


def _lowered(tags: Iterable[str]) -> set[str]:
    return {t.lower() for t in tags}


def _recency(note: Note) -> datetime:
    return note.last_modified or _EPOCH


def filter_by_tags(notes: Iterable[Note], tree: OntologyTree, selected_label: str) -> list[Note]:
    """Notes tagged with `selected_label` or with any concept beneath it."""
    expanded = _lowered(get_semantic_matches(tree, selected_label))
    return [note for note in notes if _lowered(note.tags) & expanded]


def filter_by_any_tag(notes: Iterable[Note], tree: OntologyTree, labels: Iterable[str]) -> list[Note]:
    expanded = _lowered(expand_tags(tree, labels))
    if not expanded:
        return list(notes)
    return [note for note in notes if _lowered(note.tags) & expanded]


def filter_by_status(notes: Iterable[Note], status: NoteStatus | None) -> list[Note]:
    if status is None:
        return list(notes)
    return [note for note in notes if note.status == status]


def _matches_mapping(source: Mapping[str, str], wanted: Mapping[str, str]) -> bool:
    for key, value in wanted.items():
        if value is None or value == "":
            continue
        key_lower = key.lower()
        value_lower = str(value).lower()
        if not any(k.lower() == key_lower and value_lower in str(v).lower() for k, v in source.items()):
            return False
    return True


def filter_by_values(notes: Iterable[Note], values: Mapping[str, str] | None) -> list[Note]:
    if not values:
        return list(notes)
    return [note for note in notes if _matches_mapping(note.values, values)]


def filter_by_fields(notes: Iterable[Note], fields: Mapping[str, str] | None) -> list[Note]:
    if not fields:
        return list(notes)
    return [note for note in notes if _matches_mapping(note.fields, fields)]


def _mapping_contains(mapping: Mapping[str, str], needle: str) -> bool:
    return any(needle in k.lower() or needle in str(v).lower() for k, v in mapping.items())


def text_search(notes: Iterable[Note], query: str, tree: OntologyTree | None = None) -> list[Note]:
    """Narrow notes to those whose title or content contains `query` (case-insensitive).

    With a tree, a query that looks like a tag ('#AI', '@Bob') also matches
    notes tagged with its semantic expansion, and the query is looked up in
    the notes' values and fields. Ordering is not meaningful.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(notes)

    tag_matches: set[str] = set()
    stripped = query.strip()
    if tree is not None and stripped.startswith(TAG_PREFIXES):
        tag_matches = _lowered(get_semantic_matches(tree, stripped))

    matched: list[Note] = []
    for note in notes:
        if needle in note.title.lower() or needle in note.content.lower():
            matched.append(note)
        elif tag_matches and _lowered(note.tags) & tag_matches:
            matched.append(note)
        elif tree is not None and (_mapping_contains(note.values, needle) or _mapping_contains(note.fields, needle)):
            matched.append(note)
    return matched


def sort_for_display(notes: Iterable[Note]) -> list[Note]:
    """Pinned first, then most recently updated."""
    by_recency = sorted(notes, key=_recency, reverse=True)
    return sorted(by_recency, key=lambda n: not n.pinned)


def annotate_shared_tags(note: Note, candidate: Note) -> list[str]:
    """Tags the two notes share (case-insensitive), in `note`'s order and casing."""
    other = _lowered(candidate.tags)
    return [tag for tag in note.tags if tag.lower() in other]


def rank_by_similarity(target_embedding: Sequence[float] | None, candidates: Iterable[Note]) -> list[SimilarityMatch]:
    """Score candidates by cosine similarity to `target_embedding`.

    Candidates without an embedding are left out. Results are ordered by
    similarity, ties going to the most recently updated note.
    """
    if not target_embedding:
        return []
    scored = [
        SimilarityMatch(note=note, similarity=cosine_similarity(target_embedding, note.embedding))
        for note in candidates
        if note.embedding
    ]
    scored.sort(key=lambda m: _recency(m.note), reverse=True)
    scored.sort(key=lambda m: m.similarity, reverse=True)
    return scored


def search_notes(notes: Iterable[Note], tree: OntologyTree, search_filter: SearchFilter) -> list[Note]:
    """Combined UI search: structured filters, tag expansion, free text, display order."""
    results = filter_by_status(notes, search_filter.status)
    results = filter_by_values(results, search_filter.values)
    results = filter_by_fields(results, search_filter.fields)
    if search_filter.tags:
        results = filter_by_any_tag(results, tree, search_filter.tags)
    results = text_search(results, search_filter.query, tree)
    return sort_for_display(results)


def find_similar(target: Note, notes: Iterable[Note], limit: int | None = None) -> list[SimilarityMatch]:
    """Rank the whole collection against `target`, excluding `target` itself."""
    ranked = rank_by_similarity(target.embedding, (n for n in notes if n.id != target.id))
    if limit is not None:
        ranked = ranked[: max(0, limit)]
    return [m.model_copy(update={"shared_tags": annotate_shared_tags(target, m.note)}) for m in ranked]


class SearchService:
    """Search over the note collection using the canonical ontology.

    Keeps application logic (expansion, ranking) outside the transport layer.
    """

    def __init__(
        self,
        repo: NoteRepository,
        ontology: OntologyService,
        embedder: Embedder = create_embedding,
    ) -> None:
        self._repo = repo
        self._ontology = ontology
        self._embed = embedder

    async def search(self, search_filter: SearchFilter) -> list[Note]:
        notes = await self._repo.list()
        results = search_notes(notes, self._ontology.tree, search_filter)
        logger.debug(
            "Search returned %d of %d notes",
            len(results),
            len(notes),
            extra={"query": search_filter.query, "tags": search_filter.tags},
        )
        return results

    async def filter_by_concept(self, label: str) -> list[Note]:
        notes = await self._repo.list()
        return sort_for_display(filter_by_tags(notes, self._ontology.tree, label))

    async def similar_to_note(self, note_id: str, *, limit: int | None = None) -> list[SimilarityMatch]:
        target = await self._repo.get(note_id)
        if target is None:
            raise NotFoundError(note_id, f"Note {note_id!r} not found")

        if not target.has_embedding:
            vector = await self._embed(build_note_text(target.title, target.content))
            if not vector:
                logger.info("Note %s has no embedding; nothing to rank against", note_id)
                return []
            await self._repo.update_embedding(note_id, vector)
            target = target.model_copy(update={"embedding": vector})

        notes = await self._repo.list()
        return find_similar(target, notes, limit)

    async def similar_to_text(self, text: str, *, limit: int | None = None) -> list[SimilarityMatch]:
        vector = await self._embed(text)
        if not vector:
            logger.info("No embedding available for similarity query")
            return []
        notes = await self._repo.list()
        ranked = rank_by_similarity(vector, notes)
        return ranked[:limit] if limit is not None else ranked
