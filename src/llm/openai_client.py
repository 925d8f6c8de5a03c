"""OpenAI/Azure OpenAI streaming chat client."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from config.settings import get_settings
from conversation.errors import ProviderStreamError
from llm.base import BaseLLMClient, StreamEvent
from llm.streaming import chat_chunks_to_events

LOGGER = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):
    """Wrapper for the OpenAI Chat Completion streaming API."""

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        settings = get_settings()
        if client is None:
            if not settings.llm_api_key:
                raise ValueError("LLM API key must be configured for OpenAI client.")
            client = AsyncOpenAI(
                api_key=settings.llm_api_key,
                base_url=settings.llm_endpoint or None,
            )

        self._client = client
        self._model = settings.llm_model
        self._max_tokens = settings.llm_max_tokens
        self._temperature = settings.llm_temperature

    async def stream_events(
        self,
        messages: Sequence[dict[str, Any]],
        *,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        request: dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "stream": True,
        }
        if tools:
            request["tools"] = list(tools)

        try:
            stream = await self._client.chat.completions.create(**request)
        except openai.OpenAIError as exc:
            raise ProviderStreamError(f"OpenAI request failed: {exc}") from exc

        try:
            async for event in chat_chunks_to_events(_chunk_payloads(stream)):
                yield event
        except (openai.OpenAIError, httpx.HTTPError) as exc:
            raise ProviderStreamError(f"OpenAI stream failed: {exc}") from exc
        finally:
            await stream.close()


async def _chunk_payloads(stream) -> AsyncIterator[dict[str, Any]]:
    async for chunk in stream:
        yield chunk.model_dump()
