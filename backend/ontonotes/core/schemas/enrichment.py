from __future__ import annotations

from pydantic import Field

from ontonotes.core.models.base import AppBaseModel


class TagSuggestion(AppBaseModel):
    """Validated model output for suggested note tags."""

    tags: list[str] = Field(
        description="Concept labels for the note, '#topic' or '@person', maximum 5",
        max_length=5,
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "tags": ["#MachineLearning", "#Project", "@Alice"]
                }
            ]
        }
    }
