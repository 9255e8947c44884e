from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ontonotes.config import settings
from ontonotes.core.errors import PersistenceError
from ontonotes.core.repositories.ontology_repository import OntologyRepository  # noqa: TCH001
from ontonotes.dependencies import get_ontology_repository

router = APIRouter()


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "service": "ontonotes-api",
            "version": "0.1.0"
        }
    )


@router.get("/ready")
async def readiness_check(repo: OntologyRepository = Depends(get_ontology_repository)):
    """Readiness check endpoint; reads the ontology snapshot through the repository."""
    storage_status = "connected"
    concepts = 0
    try:
        tree = await repo.load_tree()
        concepts = len(tree) if tree is not None else 0
    except PersistenceError as e:
        storage_status = f"error: {e.message}"

    return JSONResponse(
        status_code=status.HTTP_200_OK if storage_status == "connected" else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if storage_status == "connected" else "degraded",
            "storage_backend": settings.storage_backend,
            "storage": storage_status,
            "concepts": concepts,
            "api_prefix": settings.api_prefix
        }
    )
