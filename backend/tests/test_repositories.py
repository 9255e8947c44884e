"""Tests for the in-memory and Supabase repositories and the embedding job."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from conftest import FakeEmbedder, make_note

from ontonotes.background import generate_and_store_note_embedding
from ontonotes.core.errors import PersistenceError
from ontonotes.core.models.note import NoteStatus
from ontonotes.core.repositories.implementations.memory.note_repository import InMemoryNoteRepository
from ontonotes.core.repositories.implementations.memory.ontology_repository import InMemoryOntologyRepository
from ontonotes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from ontonotes.core.repositories.implementations.supabase.ontology_repository import SupabaseOntologyRepository
from ontonotes.core.services import ontology_store as store


def select_chain(client: MagicMock) -> MagicMock:
    """The mock returned by table().select().eq().limit().execute()."""
    return client.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value


class TestInMemoryOntologyRepository:

    async def test_nothing_saved(self):
        assert await InMemoryOntologyRepository().load_tree() is None

    async def test_save_and_load(self, sample_tree):
        repo = InMemoryOntologyRepository()
        await repo.save_tree(sample_tree)
        assert (await repo.load_tree()).same_structure(sample_tree)

    async def test_clear(self, sample_tree):
        repo = InMemoryOntologyRepository()
        await repo.save_tree(sample_tree)
        repo.clear()
        assert await repo.load_tree() is None


class TestInMemoryNoteRepository:

    async def test_list_most_recent_first(self, note_repo):
        notes = await note_repo.list()
        assert [n.id for n in notes] == ["n4", "n3", "n2", "n1"]
        assert [n.id for n in await note_repo.list(limit=2)] == ["n4", "n3"]

    async def test_update_embedding(self, note_repo):
        assert await note_repo.update_embedding("n4", [0.5, 0.5])
        assert (await note_repo.get("n4")).embedding == [0.5, 0.5]
        assert not await note_repo.update_embedding("missing", [1.0])


class TestSupabaseOntologyRepository:
    """PostgREST calls are mocked; only the mapping is tested."""

    async def test_load_missing(self):
        client = MagicMock()
        select_chain(client).data = []
        repo = SupabaseOntologyRepository(client, table_name="snapshots", key="tree")
        assert await repo.load_tree() is None
        client.table.assert_called_with("snapshots")

    async def test_load_text_payload(self, sample_tree):
        client = MagicMock()
        select_chain(client).data = [{"payload": store.export_to_json(sample_tree)}]
        tree = await SupabaseOntologyRepository(client).load_tree()
        assert tree.same_structure(sample_tree)

    async def test_load_jsonb_payload(self, sample_tree):
        """jsonb columns arrive already decoded."""
        client = MagicMock()
        select_chain(client).data = [{"payload": json.loads(store.export_to_json(sample_tree))}]
        tree = await SupabaseOntologyRepository(client).load_tree()
        assert tree.same_structure(sample_tree)

    async def test_corrupt_payload(self):
        client = MagicMock()
        select_chain(client).data = [{"payload": '{"nodes": {}}'}]
        with pytest.raises(PersistenceError, match="corrupt"):
            await SupabaseOntologyRepository(client).load_tree()

    async def test_save_upserts_by_key(self, sample_tree):
        client = MagicMock()
        await SupabaseOntologyRepository(client, key="main").save_tree(sample_tree)
        upsert = client.table.return_value.upsert
        row = upsert.call_args.args[0]
        assert row["key"] == "main"
        assert json.loads(row["payload"])["rootIds"] == ["ai", "music"]
        assert upsert.call_args.kwargs == {"on_conflict": "key"}

    async def test_client_errors_become_persistence_errors(self, sample_tree):
        client = MagicMock()
        client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("connection reset")
        with pytest.raises(PersistenceError, match="connection reset"):
            await SupabaseOntologyRepository(client).save_tree(sample_tree)


class TestSupabaseNoteRepository:

    async def test_get_parses_row(self):
        client = MagicMock()
        select_chain(client).data = [{
            "id": "n1",
            "title": None,
            "content": "Body",
            "tags": ["#AI"],
            "values": None,
            "embedding": "[0.1, 0.2]",
            "user_id": "someone",
            "created_at": "2024-01-01T00:00:00+00:00",
        }]
        note = await SupabaseNoteRepository(client).get("n1")
        assert note.title == ""
        assert note.values == {}
        assert note.embedding == [0.1, 0.2]

    async def test_null_flags_take_model_defaults(self):
        client = MagicMock()
        select_chain(client).data = [{
            "id": "n1",
            "status": None,
            "pinned": None,
            "archived": None,
            "created_at": "2024-01-01T00:00:00+00:00",
        }]
        note = await SupabaseNoteRepository(client).get("n1")
        assert note.status == NoteStatus.DRAFT
        assert note.pinned is False
        assert note.archived is False

    async def test_get_missing(self):
        client = MagicMock()
        select_chain(client).data = []
        assert await SupabaseNoteRepository(client).get("n1") is None

    async def test_update_embedding_reports_missing_note(self):
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.return_value.data = []
        assert not await SupabaseNoteRepository(client).update_embedding("n1", [1.0])

    async def test_errors_become_persistence_errors(self):
        client = MagicMock()
        client.table.side_effect = RuntimeError("timeout")
        with pytest.raises(PersistenceError):
            await SupabaseNoteRepository(client).list()


class TestEmbeddingJob:
    """Background embedding of a single note."""

    async def test_stores_vector(self):
        repo = InMemoryNoteRepository([make_note("n", title="Hello", content="World")])
        embedder = FakeEmbedder({"Hello\n\nWorld": [0.3, 0.4]})
        assert await generate_and_store_note_embedding(note_id="n", repo=repo, embedder=embedder)
        assert (await repo.get("n")).embedding == [0.3, 0.4]

    async def test_provider_failure_leaves_note_unembedded(self):
        repo = InMemoryNoteRepository([make_note("n", title="Hello")])
        assert not await generate_and_store_note_embedding(note_id="n", repo=repo, embedder=FakeEmbedder())
        assert (await repo.get("n")).embedding is None

    async def test_missing_or_empty_note(self):
        repo = InMemoryNoteRepository([make_note("empty")])
        embedder = FakeEmbedder()
        assert not await generate_and_store_note_embedding(note_id="missing", repo=repo, embedder=embedder)
        assert not await generate_and_store_note_embedding(note_id="empty", repo=repo, embedder=embedder)
        assert embedder.calls == []
