"""Shared abstractions for streaming language model clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ToolCallStart:
    index: int
    call_id: str
    name: str


@dataclass(frozen=True)
class ToolCallArguments:
    index: int
    fragment: str


@dataclass(frozen=True)
class ContentBlockEnd:
    """Closes the tool call block opened with the same ``index``."""

    index: int


@dataclass(frozen=True)
class StreamEnd:
    stop_reason: str | None = None


StreamEvent = Union[TextDelta, ToolCallStart, ToolCallArguments, ContentBlockEnd, StreamEnd]


class BaseLLMClient(ABC):
    """Abstract base class for streaming completion providers."""

    @abstractmethod
    def stream_events(
        self,
        messages: Sequence[dict[str, Any]],
        *,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield completion events in arrival order.

        Implementations raise ``ProviderStreamError`` for any provider-side failure,
        including failures after the first event was produced.
        """
