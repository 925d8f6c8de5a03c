"""Streaming client for self-hosted vLLM or TGI compatible inference endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from config.settings import get_settings
from conversation.errors import ProviderStreamError
from llm.base import BaseLLMClient, StreamEvent
from llm.streaming import chat_chunks_to_events

LOGGER = logging.getLogger(__name__)


class VLLMClient(BaseLLMClient):
    """Minimal server-sent-events client for an OpenAI-compatible inference server."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        if not settings.llm_endpoint:
            raise ValueError("Self-hosted LLM endpoint must be configured.")

        self._endpoint = settings.llm_endpoint.rstrip("/")
        self._model = settings.llm_model
        self._api_key = settings.llm_api_key
        self._max_tokens = settings.llm_max_tokens
        self._temperature = settings.llm_temperature
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def stream_events(
        self,
        messages: Sequence[dict[str, Any]],
        *,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "stream": True,
        }
        if tools:
            payload["tools"] = list(tools)

        try:
            async with httpx.AsyncClient(timeout=90, transport=self._transport) as client:
                async with client.stream(
                    "POST",
                    f"{self._endpoint}/v1/chat/completions",
                    json=payload,
                    headers=self._headers(),
                ) as response:
                    if response.status_code >= 400:
                        body = await response.aread()
                        raise ProviderStreamError(
                            f"LLM endpoint returned {response.status_code}: {body[:200]!r}"
                        )
                    async for event in chat_chunks_to_events(_sse_payloads(response)):
                        yield event
        except httpx.HTTPError as exc:
            raise ProviderStreamError(f"LLM stream failed: {exc}") from exc


async def _sse_payloads(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
    async for line in response.aiter_lines():
        line = line.strip()
        if not line.startswith("data:"):
            continue
        data = line[len("data:") :].strip()
        if data == "[DONE]":
            return
        try:
            yield json.loads(data)
        except json.JSONDecodeError as exc:
            raise ProviderStreamError(f"Invalid stream payload: {data[:200]}") from exc
