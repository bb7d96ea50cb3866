"""Tests for the OpenAI provider clients against a mocked transport."""

import asyncio
import json

import httpx
import pytest

from aio_jobs.core.errors import ProviderError
from aio_jobs.services.embedding_client import OpenAIEmbeddingClient
from aio_jobs.services.translation_client import OpenAITranslationClient


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="https://api.test/v1",
        transport=httpx.MockTransport(handler),
    )


def test_translate_sends_prompt_and_parses_reply():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"choices": [{"message": {"content": "Hello"}}]}
        )

    async def scenario():
        client = OpenAITranslationClient(api_key="sk", model="gpt-4", client=mock_client(handler))
        try:
            return await client.translate("こんにちは", "ja", "en")
        finally:
            await client.close()

    assert asyncio.run(scenario()) == "Hello"
    assert seen["path"] == "/v1/chat/completions"
    assert seen["body"]["model"] == "gpt-4"
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["messages"][-1] == {"role": "user", "content": "こんにちは"}
    assert "from ja to en" in seen["body"]["messages"][0]["content"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, content=b"not json"),
    ],
)
def test_translate_errors_raise_provider_error(response):
    async def scenario():
        client = OpenAITranslationClient(api_key="sk", client=mock_client(lambda request: response))
        try:
            await client.translate("text", "ja", "en")
        finally:
            await client.close()

    with pytest.raises(ProviderError):
        asyncio.run(scenario())


def test_translate_transport_error_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        client = OpenAITranslationClient(api_key="sk", client=mock_client(handler))
        try:
            await client.translate("text", "ja", "en")
        finally:
            await client.close()

    with pytest.raises(ProviderError):
        asyncio.run(scenario())


def test_embed_parses_vector():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/v1/embeddings"
        assert body["model"] == "text-embedding-3-small"
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})

    async def scenario():
        client = OpenAIEmbeddingClient(api_key="sk", client=mock_client(handler))
        try:
            return await client.embed("chunk")
        finally:
            await client.close()

    assert asyncio.run(scenario()) == [0.1, 0.2, 0.3]


def test_embed_error_raises_provider_error():
    async def scenario():
        client = OpenAIEmbeddingClient(
            api_key="sk", client=mock_client(lambda request: httpx.Response(429))
        )
        try:
            await client.embed("chunk")
        finally:
            await client.close()

    with pytest.raises(ProviderError):
        asyncio.run(scenario())
