from __future__ import annotations

from ontonotes.config import settings
from ontonotes.utils.logging import get_logger
from ontonotes.utils.openai_client import get_openai_client

logger = get_logger(__name__)


def build_note_text(title: str | None, content: str | None) -> str:
    """Concatenate title and content into a single string for embeddings.

    Keeps a stable delimiter so updates result in stable text shape.
    """
    safe_title = (title or "").strip()
    safe_content = (content or "").strip()
    if safe_title and safe_content:
        return f"{safe_title}\n\n{safe_content}"
    return safe_title or safe_content


async def create_embedding(input_text: str) -> list[float] | None:
    """Embed `input_text`; None means no embedding is available.

    Provider failures are logged, not raised: a note without a vector is
    simply left out of similarity ranking.
    """
    if not input_text or not input_text.strip():
        return None

    try:
        client = get_openai_client()
        resp = await client.embeddings.create(model=settings.embedding_model, input=input_text)
        vector = list(resp.data[0].embedding)
    except Exception as err:  # pragma: no cover - network errors
        logger.error("Failed to create embedding: %s", err, extra={"error_type": type(err).__name__})
        return None
    return vector or None
