"""Domain-specific exceptions for call sessions and relays.

These exceptions are safe to import from API and provider layers without pulling in
the relay machinery.
"""

from __future__ import annotations


class RelayError(Exception):
    status_code: int = 500
    default_detail: str = "Relay error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class SessionNotFoundError(RelayError):
    status_code = 404
    default_detail = "No session for this call."


class SessionAlreadyExistsError(RelayError):
    status_code = 409
    default_detail = "A session for this call already exists."


class MalformedMessageError(RelayError):
    status_code = 400
    default_detail = "Malformed transport message."


class ProviderStreamError(RelayError):
    status_code = 503
    default_detail = "Completion stream failed."


class ToolError(RelayError):
    """Base for failures the caller hears as a spoken error utterance."""

    status_code = 502
    default_detail = "Sorry, I couldn't complete that request."


class UnknownToolError(ToolError):
    status_code = 404
    default_detail = "Sorry, I don't know how to do that."


class ToolExecutionFailedError(ToolError):
    default_detail = "Sorry, I couldn't fetch that for you right now."
