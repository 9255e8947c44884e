from __future__ import annotations

from typing import TYPE_CHECKING

from ontonotes.config import settings
from ontonotes.core.errors import InvalidConceptError
from ontonotes.core.schemas.enrichment import TagSuggestion
from ontonotes.core.services.embedding_service import build_note_text
from ontonotes.core.services.ontology_store import normalize_label
from ontonotes.core.services.taxonomy_service import build_ontology_taxonomy
from ontonotes.utils.logging import get_logger
from ontonotes.utils.openai_client import get_openai_client

if TYPE_CHECKING:
    from ontonotes.core.models.ontology import OntologyTree

logger = get_logger(__name__)

MAX_SUGGESTED_TAGS = 5


def _clean_suggestions(raw: list[str], vocab: list[str], existing: list[str]) -> list[str]:
    """Normalize model output to concept labels.

    Labels already in the ontology keep their canonical spelling; tags the
    note already carries are not suggested again.
    """
    canonical = {label.lower(): label for label in vocab}
    taken = {t.lower() for t in existing}
    cleaned: list[str] = []
    for tag in raw:
        try:
            label = normalize_label(tag)
        except InvalidConceptError:
            continue
        label = canonical.get(label.lower(), label)
        if label.lower() in taken:
            continue
        taken.add(label.lower())
        cleaned.append(label)
    return cleaned[:MAX_SUGGESTED_TAGS]


async def suggest_note_tags(
    *,
    title: str | None,
    content: str | None,
    tree: OntologyTree,
    existing_tags: list[str] | None = None,
) -> list[str]:
    """Use the OpenAI Responses API to suggest concept labels for a note.

    The ontology vocabulary is passed as context so the model reuses existing
    concepts before inventing new ones. Returns an empty list when there is
    nothing to analyse or the provider fails.
    """
    text = build_note_text(title, content)
    if not text:
        logger.warning("No text content available for tag suggestion")
        return []

    vocab = build_ontology_taxonomy(tree).tag_vocab
    existing = [t for t in (existing_tags or []) if isinstance(t, str)]

    logger.debug("Suggestion context - tag_vocab: %s, existing_tags: %s", vocab, existing)

    instructions = (
        "You are choosing concept tags for a personal note. "
        "Return JSON only, matching the provided schema.\n"
        "- Prefer labels from tag_vocab; propose a new label only if none fits.\n"
        "- Topic labels start with '#', people start with '@'. Use CamelCase without spaces, max 5.\n"
        "- Do not repeat labels listed in existing_tags."
    )
    context = {
        "tag_vocab": vocab,
        "existing_tags": existing,
    }
    composed_input = "NOTE:\n" + text + "\n\n" + "CONTEXT:\n" + str(context)

    try:
        client = get_openai_client()
        response = await client.responses.parse(
            model=settings.enrichment_model,
            input=[
                {"role": "system", "content": instructions},
                {"role": "user", "content": composed_input},
            ],
            reasoning={"effort": settings.enrichment_model_reasoning},
            text={"verbosity": "low"},
            text_format=TagSuggestion,
        )
    except Exception as err:  # pragma: no cover - network/parse errors
        logger.error("Failed to suggest tags: %s", err, extra={"error_type": type(err).__name__})
        return []

    result = response.output_parsed
    if result is None:
        logger.warning("Tag suggestion returned no parsed output")
        return []

    suggestions = _clean_suggestions(result.tags, vocab, existing)
    logger.info("Suggested %d tag(s)", len(suggestions), extra={"tags": suggestions})
    return suggestions
