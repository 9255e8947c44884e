from __future__ import annotations

from typing import TYPE_CHECKING

from ontonotes.core.schemas.taxonomy import NoteTaxonomy
from ontonotes.core.services.ontology_store import all_labels

if TYPE_CHECKING:
    from ontonotes.core.models.ontology import OntologyTree


def build_ontology_taxonomy(tree: OntologyTree) -> NoteTaxonomy:
    """Tag vocabulary offered to clients and to the tag suggester.

    Labels are unique and listed in depth-first display order, so broader
    concepts come before the narrower ones beneath them.
    """
    return NoteTaxonomy(tag_vocab=all_labels(tree))
