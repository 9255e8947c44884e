from __future__ import annotations

from pydantic import Field, field_validator

from ontonotes.core.models.base import FrozenCamelModel


class ConceptCreate(FrozenCamelModel):
    label: str = Field(..., min_length=1, max_length=100, description="Concept label; '#' is added when no prefix is given")
    parent_id: str | None = Field(default=None, description="Parent concept id; omit to create a root")
    attributes: dict[str, str] = Field(default_factory=dict)


class ConceptUpdate(FrozenCamelModel):
    label: str | None = Field(default=None, min_length=1, max_length=100)
    attributes: dict[str, str] | None = Field(default=None, description="Replaces the whole attribute map")


class ConceptMove(FrozenCamelModel):
    new_parent_id: str | None = Field(default=None, description="Target parent id; null moves the concept to the roots")
    position: int | None = Field(default=None, description="Index among the new siblings, clamped to their count; null appends")


class SemanticMatches(FrozenCamelModel):
    label: str
    matches: list[str]

    @field_validator("matches")
    @classmethod
    def sort_matches(cls, v: list[str]) -> list[str]:
        return sorted(v)
