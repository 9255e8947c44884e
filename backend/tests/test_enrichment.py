"""Tests for tag suggestion, taxonomy and embeddings with the OpenAI client mocked."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ontonotes.core.schemas.enrichment import TagSuggestion
from ontonotes.core.services import ontology_store as store
from ontonotes.core.services.embedding_service import build_note_text, create_embedding
from ontonotes.core.services.enrichment_service import suggest_note_tags
from ontonotes.core.services.taxonomy_service import build_ontology_taxonomy


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.responses.parse = AsyncMock()
    client.embeddings.create = AsyncMock()
    with patch("ontonotes.core.services.enrichment_service.get_openai_client", return_value=client), \
         patch("ontonotes.core.services.embedding_service.get_openai_client", return_value=client):
        yield client


class TestTaxonomy:

    def test_vocab_follows_tree_order(self, sample_tree):
        assert build_ontology_taxonomy(sample_tree).tag_vocab == ["#AI", "#MachineLearning", "#NLP", "#Music"]

    def test_empty_tree(self):
        assert build_ontology_taxonomy(store.empty_tree()).tag_vocab == []


class TestSuggestNoteTags:

    async def test_suggestions_are_normalized(self, openai_client, sample_tree):
        """Known labels keep their canonical spelling; bare words get '#'."""
        openai_client.responses.parse.return_value = SimpleNamespace(
            output_parsed=TagSuggestion(tags=["#nlp", "Robotics", "@Alice", "  "]),
        )
        tags = await suggest_note_tags(title="Transformers", content="Attention", tree=sample_tree)
        assert tags == ["#NLP", "#Robotics", "@Alice"]

    async def test_existing_tags_are_not_repeated(self, openai_client, sample_tree):
        openai_client.responses.parse.return_value = SimpleNamespace(
            output_parsed=TagSuggestion(tags=["#NLP", "#MachineLearning"]),
        )
        tags = await suggest_note_tags(
            title="Transformers", content=None, tree=sample_tree, existing_tags=["#nlp"],
        )
        assert tags == ["#MachineLearning"]

    async def test_vocabulary_is_sent_as_context(self, openai_client, sample_tree):
        openai_client.responses.parse.return_value = SimpleNamespace(output_parsed=TagSuggestion(tags=[]))
        await suggest_note_tags(title="x", content="y", tree=sample_tree)
        kwargs = openai_client.responses.parse.await_args.kwargs
        assert kwargs["text_format"] is TagSuggestion
        assert "#MachineLearning" in kwargs["input"][1]["content"]

    async def test_empty_note_skips_provider(self, openai_client, sample_tree):
        assert await suggest_note_tags(title="", content="  ", tree=sample_tree) == []
        openai_client.responses.parse.assert_not_awaited()

    async def test_provider_failure(self, openai_client, sample_tree):
        openai_client.responses.parse.side_effect = RuntimeError("rate limited")
        assert await suggest_note_tags(title="x", content="y", tree=sample_tree) == []

    async def test_unparsed_output(self, openai_client, sample_tree):
        openai_client.responses.parse.return_value = SimpleNamespace(output_parsed=None)
        assert await suggest_note_tags(title="x", content="y", tree=sample_tree) == []


class TestEmbeddings:

    def test_build_note_text(self):
        assert build_note_text(" Title ", "Body ") == "Title\n\nBody"
        assert build_note_text(None, "Body") == "Body"
        assert build_note_text("", None) == ""

    async def test_create_embedding(self, openai_client):
        openai_client.embeddings.create.return_value = SimpleNamespace(
            data=[SimpleNamespace(embedding=[0.1, 0.2])],
        )
        assert await create_embedding("hello") == [0.1, 0.2]

    async def test_blank_text(self, openai_client):
        assert await create_embedding("   ") is None
        openai_client.embeddings.create.assert_not_awaited()

    async def test_provider_failure_means_no_embedding(self, openai_client):
        openai_client.embeddings.create.side_effect = RuntimeError("timeout")
        assert await create_embedding("hello") is None
