"""Translation of chat-completion stream chunks into relay events."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from typing import Any

from llm.base import ContentBlockEnd, StreamEnd, StreamEvent, TextDelta, ToolCallArguments, ToolCallStart

LOGGER = logging.getLogger(__name__)


async def chat_chunks_to_events(
    chunks: AsyncIterable[Mapping[str, Any]],
) -> AsyncIterator[StreamEvent]:
    """Turn OpenAI-compatible ``chat.completion.chunk`` payloads into events.

    Tool calls are opened on the first chunk that mentions their index and closed
    once the choice reports a finish reason. The trailing ``StreamEnd`` is always
    produced, also when the upstream stream stops without a finish reason.
    """

    open_calls: dict[int, str] = {}
    stop_reason: str | None = None

    async for chunk in chunks:
        choices = chunk.get("choices") or []
        if not choices:
            continue
        choice = choices[0]
        delta = choice.get("delta") or {}

        content = delta.get("content")
        if content:
            yield TextDelta(text=content)

        for call in delta.get("tool_calls") or []:
            index = int(call.get("index") or 0)
            function = call.get("function") or {}
            if index not in open_calls:
                call_id = call.get("id") or f"call_{index}"
                open_calls[index] = call_id
                yield ToolCallStart(index=index, call_id=call_id, name=function.get("name") or "")
            fragment = function.get("arguments")
            if fragment:
                yield ToolCallArguments(index=index, fragment=fragment)

        if choice.get("finish_reason"):
            stop_reason = choice["finish_reason"]
            break
    else:
        if open_calls:
            LOGGER.warning("Stream ended without finish reason; closing %d tool call(s)", len(open_calls))

    for index in sorted(open_calls):
        yield ContentBlockEnd(index=index)
    yield StreamEnd(stop_reason=stop_reason)
