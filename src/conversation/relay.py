"""Streaming relay between the completion provider and a live call."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from conversation.errors import ProviderStreamError, ToolError
from conversation.messages import TextMessage
from conversation.schemas import AssistantTurn
from conversation.session_store import CallSession
from conversation.state_utils import build_llm_history
from conversation.tools import ToolInvocationBridge
from llm.base import (
    BaseLLMClient,
    ContentBlockEnd,
    StreamEnd,
    TextDelta,
    ToolCallArguments,
    ToolCallStart,
)

LOGGER = logging.getLogger(__name__)

Sender = Callable[[TextMessage], Awaitable[None]]


@dataclass
class _PendingToolCall:
    call_id: str
    name: str
    fragments: list[str] = field(default_factory=list)


@dataclass
class _Utterance:
    """Text generated for the current assistant turn and what was sent of it."""

    parts: list[str] = field(default_factory=list)
    open: bool = False
    terminal_sent: bool = False

    @property
    def text(self) -> str:
        return "".join(self.parts)


class StreamingRelay:
    """Runs one completion per prompt and streams it to the caller.

    Text deltas are forwarded as they arrive and committed to the transcript as a
    single assistant turn once the stream ends. Tool calls are resolved through the
    tool bridge and spoken as their own utterance.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        tools: ToolInvocationBridge | None,
        *,
        system_prompt: str,
        error_message: str,
    ) -> None:
        self._llm = llm
        self._tools = tools
        self._system_prompt = system_prompt
        self._error_message = error_message

    async def run(self, session: CallSession, send: Sender) -> None:
        async with session.lock:
            messages = build_llm_history(self._system_prompt, session.transcript)
        declarations = self._tools.declarations() if self._tools else None

        utterance = _Utterance()
        pending: dict[int, _PendingToolCall] = {}
        stream = self._llm.stream_events(messages, tools=declarations or None)
        try:
            async for event in stream:
                if isinstance(event, TextDelta):
                    await send(TextMessage(token=event.text, last=False))
                    # Only delivered text is committed on cancellation.
                    utterance.parts.append(event.text)
                    utterance.open = True
                elif isinstance(event, ToolCallStart):
                    pending[event.index] = _PendingToolCall(call_id=event.call_id, name=event.name)
                elif isinstance(event, ToolCallArguments):
                    call = pending.get(event.index)
                    if call is not None:
                        call.fragments.append(event.fragment)
                elif isinstance(event, ContentBlockEnd):
                    call = pending.pop(event.index, None)
                    if call is not None:
                        await self._resolve_tool_call(session, send, utterance, call)
                elif isinstance(event, StreamEnd):
                    LOGGER.debug("Call %s stream ended (%s)", session.call_id, event.stop_reason)
                    break
        except ProviderStreamError as exc:
            LOGGER.error("Call %s relay aborted: %s", session.call_id, exc)
            await send(TextMessage(token=self._error_message, last=True))
            return
        except asyncio.CancelledError:
            # The caller already heard what was sent; keep it for reconciliation.
            await self._commit(session, utterance.text)
            LOGGER.info("Call %s relay cancelled after %d chars", session.call_id, len(utterance.text))
            raise
        finally:
            await stream.aclose()

        await self._commit(session, utterance.text)
        if utterance.open or not utterance.terminal_sent:
            await send(TextMessage(token="", last=True))
        LOGGER.info("Call %s sent response: %s", session.call_id, utterance.text)

    async def _resolve_tool_call(
        self,
        session: CallSession,
        send: Sender,
        utterance: _Utterance,
        call: _PendingToolCall,
    ) -> None:
        # Spoken text before the call becomes its own turn and utterance.
        await self._commit(session, utterance.text)
        utterance.parts.clear()
        if utterance.open:
            utterance.open = False
            await send(TextMessage(token="", last=True))

        if self._tools is None:
            LOGGER.warning("Call %s: model requested tool %s but tools are disabled", session.call_id, call.name)
            spoken = ToolError.default_detail
        else:
            try:
                spoken = await self._tools.invoke(
                    session,
                    call_id=call.call_id,
                    name=call.name,
                    raw_arguments="".join(call.fragments),
                )
            except ToolError as exc:
                LOGGER.warning("Call %s tool %s failed: %s", session.call_id, call.name, exc.detail)
                spoken = exc.default_detail

        await send(TextMessage(token=spoken, last=True))
        utterance.terminal_sent = True

    async def _commit(self, session: CallSession, text: str) -> None:
        if not text:
            return
        async with session.lock:
            session.transcript.append(AssistantTurn(content=text))
