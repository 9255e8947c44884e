from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from ontonotes.config import settings
from ontonotes.utils.logging import get_logger

logger = get_logger(__name__)


def _require_settings() -> tuple[str, str]:
    missing = [
        name
        for name, value in (
            ("APP_SUPABASE_URL", settings.supabase_url),
            ("APP_SUPABASE_SERVICE_ROLE_KEY", settings.supabase_service_role_key),
        )
        if not value
    ]
    if missing:
        raise RuntimeError(f"Supabase storage needs {', '.join(missing)}")
    return settings.supabase_url, settings.supabase_service_role_key


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Cached service-role client.

    The ontology snapshot and note embeddings are written by the service
    itself, never on behalf of an end user, so no session is kept.
    """
    url, key = _require_settings()
    logger.debug("Initializing Supabase client", extra={"url": url})
    return create_client(
        url,
        key,
        options=ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
            postgrest_client_timeout=settings.supabase_timeout_seconds,
        ),
    )
