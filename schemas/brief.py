"""Outreach brief schema: the structured output of brief generation.

Field names on the wire are camelCase because the generation prompt embeds an
example document with those keys; Python code uses the snake_case names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


CONTENT_IDEA_COUNT = 5
HOOK_SUGGESTION_COUNT = 3


class BriefOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    outreach_message: str = Field(
        ...,
        alias="outreachMessage",
        min_length=1,
        description="Personalised opening message referencing the creator's username and style",
    )
    content_ideas: list[str] = Field(
        ...,
        alias="contentIdeas",
        min_length=CONTENT_IDEA_COUNT,
        max_length=CONTENT_IDEA_COUNT,
    )
    hook_suggestions: list[str] = Field(
        ...,
        alias="hookSuggestions",
        min_length=HOOK_SUGGESTION_COUNT,
        max_length=HOOK_SUGGESTION_COUNT,
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
