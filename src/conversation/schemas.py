"""Pydantic schemas for transcript turns."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "tool_invocation", "tool_result"]


def _now() -> datetime:
    return datetime.now()


class UserTurn(BaseModel):
    """Recognized caller speech."""

    role: Literal["user"] = "user"
    content: str
    language: str | None = None
    created_at: datetime = Field(default_factory=_now)


class AssistantTurn(BaseModel):
    """Model-generated text as committed after (or while) it was spoken."""

    role: Literal["assistant"] = "assistant"
    content: str
    created_at: datetime = Field(default_factory=_now)


class ToolInvocationTurn(BaseModel):
    """A tool call issued by the model."""

    role: Literal["tool_invocation"] = "tool_invocation"
    call_id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)


class ToolResultTurn(BaseModel):
    """Result of a tool call, correlated by ``call_id``."""

    role: Literal["tool_result"] = "tool_result"
    call_id: str
    name: str
    content: str
    created_at: datetime = Field(default_factory=_now)


Turn = Annotated[
    Union[UserTurn, AssistantTurn, ToolInvocationTurn, ToolResultTurn],
    Field(discriminator="role"),
]
