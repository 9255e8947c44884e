from __future__ import annotations

from fastapi import APIRouter

from .endpoints import health, notes, ontology

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(ontology.router, prefix="/ontology", tags=["ontology"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
