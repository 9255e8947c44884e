from __future__ import annotations

from functools import lru_cache

from openai import AsyncOpenAI

from ontonotes.config import settings
from ontonotes.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """Shared client for embeddings and tag suggestions.

    Without `APP_OPENAI_API_KEY` the SDK falls back to `OPENAI_API_KEY`.
    """
    logger.debug(
        "Initializing OpenAI client",
        extra={"explicit_key": bool(settings.openai_api_key), "timeout": settings.openai_timeout_seconds},
    )
    return AsyncOpenAI(
        api_key=settings.openai_api_key or None,
        timeout=settings.openai_timeout_seconds,
        max_retries=settings.openai_max_retries,
    )
