from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from ontonotes.config import settings
from ontonotes.core.repositories.implementations.memory.note_repository import InMemoryNoteRepository
from ontonotes.core.repositories.implementations.memory.ontology_repository import InMemoryOntologyRepository
from ontonotes.core.repositories.note_repository import NoteRepository  # noqa: TCH001
from ontonotes.core.repositories.ontology_repository import OntologyRepository  # noqa: TCH001
from ontonotes.core.services.ontology_service import OntologyService
from ontonotes.core.services.search_service import SearchService
from ontonotes.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_ontology_repository() -> OntologyRepository:
    """Process-wide snapshot store selected by `APP_STORAGE_BACKEND`."""
    if settings.storage_backend == "supabase":
        from ontonotes.core.repositories.implementations.supabase.ontology_repository import (
            SupabaseOntologyRepository,
        )
        from ontonotes.db.base import get_supabase_admin_client

        logger.info("Using Supabase ontology storage", extra={"table": settings.ontology_table})
        return SupabaseOntologyRepository(
            get_supabase_admin_client(),
            table_name=settings.ontology_table,
            key=settings.ontology_storage_key,
        )
    logger.info("Using in-memory ontology storage")
    return InMemoryOntologyRepository(key=settings.ontology_storage_key)


@lru_cache(maxsize=1)
def get_note_repository() -> NoteRepository:
    if settings.storage_backend == "supabase":
        from ontonotes.core.repositories.implementations.supabase.note_repository import (
            SupabaseNoteRepository,
        )
        from ontonotes.db.base import get_supabase_admin_client

        return SupabaseNoteRepository(get_supabase_admin_client(), table_name=settings.notes_table)
    return InMemoryNoteRepository()


@lru_cache(maxsize=1)
def get_ontology_service() -> OntologyService:
    """The single holder of the canonical tree for this process."""
    return OntologyService(get_ontology_repository(), seed_default=settings.seed_default_ontology)


async def get_loaded_ontology_service(
    service: OntologyService = Depends(get_ontology_service),
) -> OntologyService:
    """Ontology service with the stored tree loaded on first use."""
    await service.ensure_loaded()
    return service


def get_search_service(
    repo: NoteRepository = Depends(get_note_repository),
    ontology: OntologyService = Depends(get_loaded_ontology_service),
) -> SearchService:
    """Get a request-scoped search service instance."""
    return SearchService(repo, ontology)
