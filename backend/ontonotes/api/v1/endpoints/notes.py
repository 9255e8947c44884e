from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ontonotes.api.v1.schemas.note_search import (
    NotePublic,
    SimilarNotePublic,
    SimilarTextRequest,
    TagSuggestionResponse,
)
from ontonotes.background import generate_and_store_note_embedding
from ontonotes.config import settings
from ontonotes.core.errors import NotFoundError
from ontonotes.core.repositories.note_repository import NoteRepository  # noqa: TCH001
from ontonotes.core.schemas.note_search import SearchFilter
from ontonotes.core.services.enrichment_service import suggest_note_tags
from ontonotes.core.services.ontology_service import OntologyService  # noqa: TCH001
from ontonotes.core.services.search_service import SearchService  # noqa: TCH001
from ontonotes.dependencies import get_loaded_ontology_service, get_note_repository, get_search_service

router = APIRouter()


@router.post("/search", response_model=list[NotePublic])
async def search_notes(
    payload: SearchFilter,
    service: SearchService = Depends(get_search_service),
):
    """Filter notes by status, values, fields, concept tags and free text.

    Selected tags are expanded through the ontology, so '#AI' also finds
    notes tagged with narrower concepts. Pinned notes come first, then the
    most recently updated.
    """
    notes = await service.search(payload)
    return [NotePublic.model_validate(n) for n in notes]


@router.post("/similar", response_model=list[SimilarNotePublic])
async def similar_to_text(
    payload: SimilarTextRequest,
    service: SearchService = Depends(get_search_service),
):
    matches = await service.similar_to_text(payload.text, limit=payload.limit)
    return [SimilarNotePublic.model_validate(m) for m in matches]


@router.get("/{note_id}/similar", response_model=list[SimilarNotePublic])
async def similar_to_note(
    note_id: str,
    limit: int = Query(default=settings.similarity_default_limit, ge=1, le=100),
    service: SearchService = Depends(get_search_service),
):
    """Notes closest in content to `note_id`, with the tags they share."""
    matches = await service.similar_to_note(note_id, limit=limit)
    return [SimilarNotePublic.model_validate(m) for m in matches]


@router.post("/{note_id}/suggest-tags", response_model=TagSuggestionResponse)
async def suggest_tags(
    note_id: str,
    repo: NoteRepository = Depends(get_note_repository),
    ontology: OntologyService = Depends(get_loaded_ontology_service),
):
    note = await repo.get(note_id)
    if note is None:
        raise NotFoundError(note_id, f"Note {note_id!r} not found")
    tags = await suggest_note_tags(
        title=note.title,
        content=note.content,
        tree=ontology.tree,
        existing_tags=note.tags,
    )
    return TagSuggestionResponse(note_id=note_id, tags=tags)


@router.post("/{note_id}/embedding", status_code=status.HTTP_202_ACCEPTED)
async def refresh_embedding(
    note_id: str,
    background_tasks: BackgroundTasks,
    repo: NoteRepository = Depends(get_note_repository),
):
    """Recompute the note's content embedding in the background."""
    if await repo.get(note_id) is None:
        raise NotFoundError(note_id, f"Note {note_id!r} not found")
    background_tasks.add_task(generate_and_store_note_embedding, note_id=note_id, repo=repo)
    return {"note_id": note_id, "status": "scheduled"}
