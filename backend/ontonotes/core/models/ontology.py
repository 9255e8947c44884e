from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field, field_validator

from .base import FrozenCamelModel, utc_now


class ConceptNode(FrozenCamelModel):
    """A single concept (semantic tag) in the ontology tree.

    `child_ids` lists, in display order, exactly the nodes whose `parent_id`
    is this node's id. Nodes reference each other by id only.
    """

    id: str = Field(..., min_length=1, description="Stable concept identifier")
    label: str = Field(..., min_length=1, description="Tag label, '#topic' or '@person'")
    parent_id: str | None = Field(default=None, description="Parent concept id; None for roots")
    child_ids: tuple[str, ...] = Field(default=(), description="Ordered child concept ids")
    attributes: dict[str, str] = Field(default_factory=dict, description="Free-form key/value pairs")

    @field_validator("child_ids", "attributes", mode="before")
    @classmethod
    def null_as_empty(cls, v, info):
        if v is None:
            return () if info.field_name == "child_ids" else {}
        return v


class OntologyTree(FrozenCamelModel):
    """Flat, id-addressed forest of concepts.

    Mutation functions in `ontology_store` never modify an instance; they
    return a new tree with `model_copy(update=...)`.
    """

    nodes: dict[str, ConceptNode] = Field(default_factory=dict)
    root_ids: tuple[str, ...] = Field(default=())
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("updated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps from older snapshots are treated as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def structure(self) -> dict:
        """Everything except `updated_at`, for structural comparisons."""
        return self.model_dump(exclude={"updated_at"})

    def same_structure(self, other: OntologyTree) -> bool:
        return self.structure() == other.structure()
