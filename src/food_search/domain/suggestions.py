"""Models for AI food suggestions."""

from pydantic import BaseModel, Field


class FoodSuggestions(BaseModel):
    """Structured output for alternative food suggestions."""

    suggestions: list[str] = Field(default_factory=list)
