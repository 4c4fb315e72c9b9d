"""Open Food Facts search API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class OpenFoodFactsClient(Protocol):
    """Interface for Open Food Facts product search."""

    async def search_products(
        self, search_terms: str, page_size: int = 20
    ) -> dict[str, object]:
        """Search products by free text and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client. No API key is required."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 3.0

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 3.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def search_products(
        self, search_terms: str, page_size: int = 20
    ) -> dict[str, object]:
        """Run a simple product search sorted by popularity."""
        url = f"{self.base_url}/cgi/search.pl"
        response = await self.http_client.get(
            url,
            params={
                "search_terms": search_terms,
                "search_simple": 1,
                "action": "process",
                "json": 1,
                "page_size": page_size,
                "sort_by": "popularity_key",
            },
            headers={"Accept": "application/json"},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
