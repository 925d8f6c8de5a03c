"""Transport message variants exchanged with Twilio ConversationRelay.

Inbound payloads are decoded and validated exactly once, here; the rest of the
code only sees the typed variants.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from conversation.errors import MalformedMessageError


class _Inbound(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SetupMessage(_Inbound):
    type: Literal["setup"]
    call_id: str = Field(alias="callSid", min_length=1)
    from_number: str | None = Field(default=None, alias="from")
    to_number: str | None = Field(default=None, alias="to")


class PromptMessage(_Inbound):
    type: Literal["prompt"]
    text: str = Field(alias="voicePrompt")
    language: str | None = Field(default=None, alias="lang")
    last: bool = True


class InterruptMessage(_Inbound):
    type: Literal["interrupt"]
    spoken_prefix: str = Field(default="", alias="utteranceUntilInterrupt")
    duration_ms: int | None = Field(default=None, alias="durationUntilInterruptMs")


class UnknownMessage(BaseModel):
    """Any message type this service does not act on (dtmf, error, ...)."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


InboundMessage = Union[SetupMessage, PromptMessage, InterruptMessage, UnknownMessage]

_KNOWN = TypeAdapter(
    Annotated[Union[SetupMessage, PromptMessage, InterruptMessage], Field(discriminator="type")]
)
_KNOWN_TYPES = {"setup", "prompt", "interrupt"}


def parse_inbound_message(raw: str | bytes) -> InboundMessage:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedMessageError(f"Message is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        raise MalformedMessageError("Message must be an object with a string 'type'.")

    if payload["type"] not in _KNOWN_TYPES:
        return UnknownMessage(type=payload["type"], payload=payload)

    try:
        return _KNOWN.validate_python(payload)
    except ValidationError as exc:
        raise MalformedMessageError(f"Invalid {payload['type']} message: {exc}") from exc


class TextMessage(BaseModel):
    """Outbound text token; ``last`` marks the end of a spoken utterance."""

    type: Literal["text"] = "text"
    token: str
    last: bool = False

    def to_json(self) -> str:
        return self.model_dump_json()
