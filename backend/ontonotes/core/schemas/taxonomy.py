from __future__ import annotations

from pydantic import Field

from ontonotes.core.models.base import AppBaseModel


class NoteTaxonomy(AppBaseModel):
    """Tag vocabulary derived from the ontology.

    - tag_vocab: every concept label, in depth-first display order
    """

    tag_vocab: list[str] = Field(default_factory=list)
