from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from conversation.schemas import AssistantTurn, ToolInvocationTurn, ToolResultTurn, Turn, UserTurn


def message_for_turn(turn: Turn) -> dict[str, Any]:
    """Map a transcript turn to an OpenAI-style chat message."""

    if isinstance(turn, UserTurn):
        return {"role": "user", "content": turn.content}
    if isinstance(turn, AssistantTurn):
        return {"role": "assistant", "content": turn.content}
    if isinstance(turn, ToolInvocationTurn):
        return {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": turn.call_id,
                    "type": "function",
                    "function": {"name": turn.name, "arguments": json.dumps(turn.arguments)},
                }
            ],
        }
    if isinstance(turn, ToolResultTurn):
        return {"role": "tool", "tool_call_id": turn.call_id, "content": turn.content}
    raise TypeError(f"Unsupported turn type: {type(turn).__name__}")


def build_llm_history(system_prompt: str, transcript: Iterable[Turn]) -> list[dict[str, Any]]:
    history: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for turn in transcript:
        history.append(message_for_turn(turn))
    return history
