"""OpenAI embeddings client used to execute embedding jobs."""

import logging
from typing import Optional, Protocol

import httpx

from ..core.errors import ProviderError

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Anything that can embed text for the drain service."""

    model: str

    async def embed(self, text: str) -> list[float]:
        ...


class OpenAIEmbeddingClient:
    """Client for the OpenAI embeddings endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-3-small",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize embedding client.

        Args:
            api_key: OpenAI API key
            base_url: API base URL
            model: Embedding model name
            timeout: HTTP timeout in seconds
            client: Optional preconfigured HTTP client (tests)
        """
        self.model = model
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def embed(self, text: str) -> list[float]:
        """
        Embed one chunk of text.

        Args:
            text: Chunk text

        Returns:
            Embedding vector

        Raises:
            ProviderError: On transport errors, non-2xx responses or malformed payloads
        """
        logger.debug(f"Embedding {len(text)} chars with {self.model}")
        payload = {"input": text, "model": self.model, "encoding_format": "float"}

        try:
            response = await self._client.post("/embeddings", json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(
                f"OpenAI API error: {response.status_code} {response.reason_phrase}"
            )

        try:
            return [float(x) for x in response.json()["data"][0]["embedding"]]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Malformed OpenAI embedding response: {e}") from e
