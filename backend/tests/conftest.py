"""
Shared pytest fixtures for the ontonotes tests.

Sample ontology:
- #AI (ai) -> #MachineLearning (ml) -> #NLP (nlp)
- #Music (music)

Providers are replaced with deterministic fakes; nothing talks to OpenAI
or Supabase.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from ontonotes.core.errors import PersistenceError
from ontonotes.core.models.note import Note
from ontonotes.core.models.ontology import ConceptNode
from ontonotes.core.repositories.implementations.memory.note_repository import InMemoryNoteRepository
from ontonotes.core.repositories.implementations.memory.ontology_repository import InMemoryOntologyRepository
from ontonotes.core.repositories.ontology_repository import OntologyRepository
from ontonotes.core.services import ontology_store as store
from ontonotes.core.services.ontology_service import OntologyService

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def build_tree(*nodes: ConceptNode):
    tree = store.empty_tree()
    for node in nodes:
        tree = store.add_node(tree, node)
    return tree


def make_note(note_id: str, *, minutes: int = 0, **kwargs) -> Note:
    """Note stamped `minutes` after BASE_TIME, so larger means more recent."""
    stamp = BASE_TIME + timedelta(minutes=minutes)
    return Note(id=note_id, created_at=stamp, updated_at=stamp, **kwargs)


class FakeEmbedder:
    """Deterministic embedder: looks vectors up by exact text."""

    def __init__(self, vectors: dict[str, list[float]] | None = None):
        self.vectors = dict(vectors or {})
        self.calls: list[str] = []

    async def __call__(self, text: str) -> list[float] | None:
        self.calls.append(text)
        return self.vectors.get(text)


class FailingOntologyRepository(OntologyRepository):
    """Repository whose saves always fail; loads return `initial` unless `fail_load`."""

    def __init__(self, initial=None, *, fail_load=False):
        self.initial = initial
        self.fail_load = fail_load
        self.save_attempts = 0

    async def load_tree(self):
        if self.fail_load:
            raise PersistenceError("connection refused")
        return self.initial

    async def save_tree(self, tree) -> None:
        self.save_attempts += 1
        raise PersistenceError("disk full")


@pytest.fixture
def sample_tree():
    """#AI -> #MachineLearning -> #NLP, plus a separate #Music root."""
    return build_tree(
        ConceptNode(id="ai", label="#AI"),
        ConceptNode(id="ml", label="#MachineLearning", parent_id="ai"),
        ConceptNode(id="nlp", label="#NLP", parent_id="ml"),
        ConceptNode(id="music", label="#Music"),
    )


@pytest.fixture
def ontology_repo():
    return InMemoryOntologyRepository()


@pytest.fixture
async def ontology_service(ontology_repo, sample_tree):
    """Loaded service whose canonical tree is the sample tree."""
    await ontology_repo.save_tree(sample_tree)
    service = OntologyService(ontology_repo)
    await service.load()
    return service


@pytest.fixture
def failing_repo(sample_tree):
    return FailingOntologyRepository(initial=sample_tree)


@pytest.fixture
def sample_notes():
    return [
        make_note("n1", minutes=1, title="Transformers", content="Attention is all you need", tags=["#NLP"],
                  embedding=[1.0, 0.0]),
        make_note("n2", minutes=2, title="Guitar chords", tags=["#Music"], embedding=[0.0, 1.0]),
        make_note("n3", minutes=3, title="Gradient descent", tags=["#MachineLearning"], embedding=[0.9, 0.1]),
        make_note("n4", minutes=4, title="Untagged thoughts", content="Nothing to see"),
    ]


@pytest.fixture
def note_repo(sample_notes):
    return InMemoryNoteRepository(sample_notes)


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()
