"""AI suggestions for searches with too few results."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from food_search.domain.suggestions import FoodSuggestions

SUGGESTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {"type": "string"},
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}

MAX_SUGGESTIONS = 5
_BULLET_PREFIX = re.compile(r"^[-*•\d]+\.?\s*")

_logger = logging.getLogger(__name__)


class SuggestionClient(Protocol):
    """Interface for LLM-backed suggestion generation."""

    async def suggest(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Return structured suggestion data."""


@dataclass
class SuggestionService:
    """Asks an LLM for alternative foods and cleans up the answer."""

    client: SuggestionClient
    model: str

    async def suggest(self, query: str) -> list[str] | None:
        """Return up to five alternative food names, or None on failure."""
        prompt = f"Suggest 3-5 healthy food alternatives for: {query}"
        try:
            raw = await self.client.suggest(
                model=self.model, prompt=prompt, schema=SUGGESTION_SCHEMA
            )
            parsed = FoodSuggestions.model_validate(raw)
        except (ValidationError, ValueError) as exc:
            _logger.warning("AI suggestions returned invalid data: %s", exc)
            return None
        except Exception:
            _logger.exception("AI suggestions failed for query=%s", query)
            return None
        return clean_suggestions(parsed.suggestions)


def clean_suggestions(lines: list[str]) -> list[str]:
    """Strip bullets and numbering, dropping empty or oversized lines."""
    cleaned: list[str] = []
    for line in lines:
        text = _BULLET_PREFIX.sub("", line).strip()
        if 3 < len(text) < 100:
            cleaned.append(text)
    return cleaned[:MAX_SUGGESTIONS]
