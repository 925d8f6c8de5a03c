from __future__ import annotations

import asyncio
from typing import Any

from conversation.messages import TextMessage
from conversation.tools import Tool, ToolInvocationBridge, ToolRegistry
from llm.base import BaseLLMClient

HANG = object()


class ScriptedLLM(BaseLLMClient):
    """Plays back one scripted event list per completion request.

    A script item may be an event, an exception to raise, or ``HANG`` to block
    until the relay is cancelled.
    """

    def __init__(self, *scripts: list) -> None:
        self.scripts = list(scripts)
        self.requests: list[tuple[list[dict[str, Any]], Any]] = []
        self.closed = 0

    async def stream_events(self, messages, *, tools=None):
        self.requests.append((list(messages), tools))
        script = self.scripts.pop(0)
        try:
            for item in script:
                if item is HANG:
                    await asyncio.Event().wait()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed += 1


class RecordingSender:
    def __init__(self) -> None:
        self.messages: list[TextMessage] = []
        self.first_sent = asyncio.Event()

    async def __call__(self, message: TextMessage) -> None:
        self.messages.append(message)
        self.first_sent.set()

    @property
    def pairs(self) -> list[tuple[str, bool]]:
        return [(message.token, message.last) for message in self.messages]


def joke_bridge(result: str = "Why did the chicken cross the road? To get to the other side.") -> ToolInvocationBridge:
    async def get_joke(arguments: dict[str, Any]) -> str:
        return result

    return ToolInvocationBridge(
        ToolRegistry([Tool(name="get_joke", description="Tell a joke.", handler=get_joke)])
    )
