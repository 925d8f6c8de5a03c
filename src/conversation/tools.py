"""Tool registry and the bridge that splices tool calls into transcripts."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from conversation.errors import ToolExecutionFailedError, UnknownToolError
from conversation.schemas import ToolInvocationTurn, ToolResultTurn
from conversation.session_store import CallSession
from integrations.joke_client import JokeClient

LOGGER = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[str]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    handler: ToolHandler
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    def declaration(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(f"Unknown tool requested: {name!r}") from None

    def declarations(self) -> list[dict[str, Any]]:
        return [tool.declaration() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)


def build_tool_registry(joke_client: JokeClient | None = None) -> ToolRegistry:
    """Registry with the tools available to the assistant on a call."""

    jokes = joke_client or JokeClient()

    async def get_joke(arguments: dict[str, Any]) -> str:
        return await jokes.fetch_joke()

    return ToolRegistry(
        [
            Tool(
                name="get_joke",
                description="Fetch a random joke to tell the caller. Takes no parameters.",
                handler=get_joke,
            )
        ]
    )


def parse_tool_arguments(raw: str) -> dict[str, Any]:
    if not raw.strip():
        return {}
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ToolExecutionFailedError(f"Invalid tool arguments: {raw[:200]}") from exc
    if not isinstance(arguments, dict):
        raise ToolExecutionFailedError(f"Tool arguments must be an object, got {type(arguments).__name__}")
    return arguments


class ToolInvocationBridge:
    """Runs model-issued tool calls and records them in the call transcript."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    def declarations(self) -> list[dict[str, Any]]:
        return self._registry.declarations()

    async def invoke(
        self,
        session: CallSession,
        *,
        call_id: str,
        name: str,
        raw_arguments: str,
    ) -> str:
        """Execute the tool and append the invocation/result turn pair.

        Nothing is appended when the tool is unknown or fails, so the transcript
        never holds an invocation without its result.
        """

        tool = self._registry.get(name)
        arguments = parse_tool_arguments(raw_arguments)
        LOGGER.info("Call %s invoking tool %s (%s)", session.call_id, name, call_id)

        try:
            result = await tool.handler(arguments)
        except ToolExecutionFailedError:
            raise
        except Exception as exc:
            LOGGER.exception("Tool %s failed: %s", name, exc)
            raise ToolExecutionFailedError(f"Tool {name} failed: {exc}") from exc

        async with session.lock:
            session.transcript.append(
                ToolInvocationTurn(call_id=call_id, name=name, arguments=arguments)
            )
            session.transcript.append(ToolResultTurn(call_id=call_id, name=name, content=result))
        return result
