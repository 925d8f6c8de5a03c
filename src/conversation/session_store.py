"""Registry of live call sessions."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from conversation.errors import SessionAlreadyExistsError, SessionNotFoundError
from conversation.schemas import Turn

LOGGER = logging.getLogger(__name__)


@dataclass
class CallSession:
    """Transcript and relay bookkeeping for a single call.

    ``lock`` guards every read-modify-write of ``transcript``. ``relay_task`` is the
    in-flight streaming relay, if any; only the transport dispatcher replaces it.
    """

    call_id: str
    transcript: list[Turn] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    relay_task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def relay_active(self) -> bool:
        return self.relay_task is not None and not self.relay_task.done()


class SessionStore:
    """In-memory store for call sessions.

    Note: This is a single-process store. Sessions live exactly as long as the
    transport connection that created them.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, CallSession] = {}

    async def create(self, call_id: str) -> CallSession:
        async with self._lock:
            if call_id in self._sessions:
                raise SessionAlreadyExistsError(f"Session already exists for call {call_id}.")
            session = CallSession(call_id=call_id)
            self._sessions[call_id] = session
        LOGGER.debug("Created session %s", call_id)
        return session

    async def get(self, call_id: str | None) -> CallSession:
        async with self._lock:
            session = self._sessions.get(call_id) if call_id else None
        if session is None:
            raise SessionNotFoundError(f"No session for call {call_id}.")
        return session

    async def remove(self, call_id: str | None) -> CallSession | None:
        if not call_id:
            return None
        async with self._lock:
            return self._sessions.pop(call_id, None)

    async def list_ids(self) -> list[str]:
        async with self._lock:
            return sorted(self._sessions)

    async def snapshot(self, call_id: str) -> list[Turn]:
        """Return a copy of the transcript taken while no writer holds the session."""

        session = await self.get(call_id)
        async with session.lock:
            return [turn.model_copy() for turn in session.transcript]
