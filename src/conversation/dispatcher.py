"""Per-connection handling of ConversationRelay transport messages."""

from __future__ import annotations

import asyncio
import logging

from conversation.errors import RelayError, SessionAlreadyExistsError
from conversation.interrupts import find_interrupted_turn, reconcile_interrupt
from conversation.messages import (
    InboundMessage,
    InterruptMessage,
    PromptMessage,
    SetupMessage,
    UnknownMessage,
    parse_inbound_message,
)
from conversation.relay import Sender, StreamingRelay
from conversation.schemas import UserTurn
from conversation.session_store import CallSession, SessionStore

LOGGER = logging.getLogger(__name__)


class TransportDispatcher:
    """Routes inbound messages of one call connection.

    The receive loop keeps reading while a relay streams, so the relay runs as a
    task. A ``prompt`` or ``interrupt`` first cancels and awaits the session's
    running relay, which keeps at most one relay writing to a transcript.
    """

    def __init__(self, store: SessionStore, relay: StreamingRelay, send: Sender) -> None:
        self._store = store
        self._relay = relay
        self._send = send
        self.call_id: str | None = None

    async def handle_raw(self, raw: str | bytes) -> None:
        """Decode and dispatch one frame; failures are logged and confined to it."""

        try:
            await self.dispatch(parse_inbound_message(raw))
        except RelayError as exc:
            LOGGER.warning("Call %s: rejected message: %s", self.call_id or "?", exc.detail)

    async def dispatch(self, message: InboundMessage) -> None:
        if isinstance(message, SetupMessage):
            await self._on_setup(message)
        elif isinstance(message, PromptMessage):
            await self._on_prompt(message)
        elif isinstance(message, InterruptMessage):
            await self._on_interrupt(message)
        elif isinstance(message, UnknownMessage):
            LOGGER.warning("Unknown message type received: %s", message.type)

    async def _on_setup(self, message: SetupMessage) -> None:
        if self.call_id is not None:
            raise SessionAlreadyExistsError(
                f"Connection is already bound to call {self.call_id}; ignoring setup for {message.call_id}."
            )
        LOGGER.info("Setup for call: %s", message.call_id)
        await self._store.create(message.call_id)
        self.call_id = message.call_id

    async def _on_prompt(self, message: PromptMessage) -> None:
        if not message.last:
            LOGGER.debug("Call %s: ignoring partial prompt", self.call_id)
            return
        session = await self._store.get(self.call_id)
        LOGGER.info("Processing prompt: %s", message.text)

        await cancel_relay(session)
        async with session.lock:
            session.transcript.append(UserTurn(content=message.text, language=message.language))
        self._start_relay(session)

    async def _on_interrupt(self, message: InterruptMessage) -> None:
        session = await self._store.get(self.call_id)
        LOGGER.info("Handling interruption after: %r", message.spoken_prefix)

        await cancel_relay(session)
        async with session.lock:
            if find_interrupted_turn(session.transcript, message.spoken_prefix) is None:
                LOGGER.info("Call %s: no assistant turn matches the interrupt; ignored", session.call_id)
                return
            session.transcript[:] = reconcile_interrupt(session.transcript, message.spoken_prefix)

    def _start_relay(self, session: CallSession) -> None:
        task = asyncio.create_task(
            self._relay.run(session, self._send),
            name=f"relay-{session.call_id}",
        )
        task.add_done_callback(_log_relay_outcome)
        session.relay_task = task

    async def close(self) -> None:
        """Tear down the call: stop its relay and drop the session."""

        session = await self._store.remove(self.call_id)
        if session is not None:
            await cancel_relay(session)
        LOGGER.info("WebSocket connection closed for call %s", self.call_id)


async def cancel_relay(session: CallSession) -> None:
    """Cancel the session's running relay and wait until it has unwound."""

    task = session.relay_task
    session.relay_task = None
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise
    except Exception:
        # Reported by the task's done callback.
        LOGGER.debug("Cancelled relay for call %s had already failed", session.call_id)


def _log_relay_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        LOGGER.error("Relay task %s failed", task.get_name(), exc_info=exc)
