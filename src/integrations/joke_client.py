"""HTTP client for the random joke service used by the ``get_joke`` tool."""

from __future__ import annotations

import logging

import httpx

from config.settings import get_settings
from conversation.errors import ToolExecutionFailedError

LOGGER = logging.getLogger(__name__)


class JokeClient:
    """Fetches a single joke from a stateless JSON endpoint."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        self._url = settings.joke_api_url
        self._timeout = settings.tool_timeout_seconds
        self._transport = transport

    async def fetch_joke(self) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url, headers={"Accept": "application/json"})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.error("Joke fetch failed: %s", exc)
            raise ToolExecutionFailedError() from exc

        return render_joke(data)


def render_joke(data: object) -> str:
    """Render ``{"setup": ..., "punchline": ...}`` (or ``{"joke": ...}``) as one line."""

    if isinstance(data, list) and data:
        data = data[0]
    if not isinstance(data, dict):
        raise ToolExecutionFailedError()

    setup = str(data.get("setup") or "").strip()
    punchline = str(data.get("punchline") or data.get("delivery") or "").strip()
    if setup and punchline:
        return f"{setup} {punchline}"
    single = str(data.get("joke") or "").strip()
    if single:
        return single
    raise ToolExecutionFailedError()
