"""OpenAI chat-completions client used to execute translation jobs."""

import logging
from typing import Optional, Protocol

import httpx

from ..core.errors import ProviderError

logger = logging.getLogger(__name__)


class TranslationProvider(Protocol):
    """Anything that can translate text for the drain service."""

    service_name: str

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        ...


class OpenAITranslationClient:
    """Client for OpenAI chat completions, prompted as a translator."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4",
        temperature: float = 0.3,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize translation client.

        Args:
            api_key: OpenAI API key
            base_url: API base URL
            model: Chat model name
            temperature: Sampling temperature
            timeout: HTTP timeout in seconds
            client: Optional preconfigured HTTP client (tests)
        """
        self.model = model
        self.temperature = temperature
        self.service_name = f"openai:{model}"
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

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """
        Translate text between two languages.

        Args:
            text: Source text
            source_lang: Source language code
            target_lang: Target language code

        Returns:
            Translated text

        Raises:
            ProviderError: On transport errors, non-2xx responses or malformed payloads
        """
        logger.debug(f"Translating {len(text)} chars {source_lang}->{target_lang} with {self.model}")
        payload = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": (
                        "You are a professional translator. Translate the following text "
                        f"from {source_lang} to {target_lang}. Maintain the original tone, "
                        "style, and formatting."
                    ),
                },
                {"role": "user", "content": text},
            ],
            "temperature": self.temperature,
        }

        try:
            response = await self._client.post("/chat/completions", json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(
                f"OpenAI API error: {response.status_code} {response.reason_phrase}"
            )

        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Malformed OpenAI translation response: {e}") from e
