from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status

from ontonotes.api.v1.schemas.ontology import ConceptCreate, ConceptMove, ConceptUpdate, SemanticMatches
from ontonotes.core.models.ontology import ConceptNode, OntologyTree
from ontonotes.core.schemas.taxonomy import NoteTaxonomy
from ontonotes.core.services import ontology_store as store
from ontonotes.core.services.ontology_service import OntologyService  # noqa: TCH001
from ontonotes.core.services.semantic_matcher import get_semantic_matches
from ontonotes.core.services.taxonomy_service import build_ontology_taxonomy
from ontonotes.dependencies import get_loaded_ontology_service

router = APIRouter()


@router.get("", response_model=OntologyTree)
async def get_ontology(service: OntologyService = Depends(get_loaded_ontology_service)):
    return service.tree


@router.get("/children", response_model=list[ConceptNode])
async def list_children(
    parent_id: str | None = Query(default=None, description="Parent concept id; omit for the roots"),
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    return store.get_child_nodes(service.tree, parent_id)


@router.post("/concepts", response_model=ConceptNode, status_code=status.HTTP_201_CREATED)
async def create_concept(
    payload: ConceptCreate,
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    return await service.add_concept(payload.label, payload.parent_id, payload.attributes)


@router.patch("/concepts/{concept_id}", response_model=ConceptNode)
async def update_concept(
    concept_id: str,
    payload: ConceptUpdate,
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    return await service.update_concept(concept_id, label=payload.label, attributes=payload.attributes)


@router.post("/concepts/{concept_id}/move", response_model=OntologyTree)
async def move_concept(
    concept_id: str,
    payload: ConceptMove,
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    return await service.move_concept(concept_id, payload.new_parent_id, payload.position)


@router.delete("/concepts/{concept_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_concept(
    concept_id: str,
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    """Remove a concept; its children move up to its former parent."""
    await service.remove_concept(concept_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/export")
async def export_ontology(service: OntologyService = Depends(get_loaded_ontology_service)):
    return Response(
        content=service.export_tree(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="ontology.json"'},
    )


@router.post("/import", response_model=OntologyTree)
async def import_ontology(
    request: Request,
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    """Replace the whole ontology with a previously exported document.

    The raw request body is parsed as-is so malformed documents surface as
    import format errors rather than request validation errors.
    """
    body = await request.body()
    return await service.import_tree(body)


@router.get("/matches", response_model=SemanticMatches)
async def semantic_matches(
    label: str = Query(..., min_length=1, description="Concept label, e.g. '#AI'"),
    service: OntologyService = Depends(get_loaded_ontology_service),
):
    """The label plus every narrower concept label beneath it."""
    return SemanticMatches(label=label, matches=get_semantic_matches(service.tree, label))


@router.get("/taxonomy", response_model=NoteTaxonomy)
async def get_taxonomy(service: OntologyService = Depends(get_loaded_ontology_service)):
    return build_ontology_taxonomy(service.tree)
