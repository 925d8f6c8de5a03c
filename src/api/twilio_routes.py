"""Twilio ConversationRelay integration.

This module provides:
- TwiML webhook that connects an incoming call to ConversationRelay.
- The ConversationRelay WebSocket, one connection per call.

Speech recognition and synthesis happen on Twilio's side; this service only
exchanges text with the call.
"""

from __future__ import annotations

import logging
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, Request, Response, WebSocket, WebSocketDisconnect

from api.dependencies import build_relay, get_llm_client, get_session_store, get_tool_bridge
from config.settings import get_settings
from conversation.dispatcher import TransportDispatcher
from conversation.messages import TextMessage
from conversation.session_store import SessionStore
from conversation.tools import ToolInvocationBridge
from llm.base import BaseLLMClient

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["twilio"])


def _twiml_response(xml: str) -> Response:
    # Twilio expects text/xml
    return Response(content=xml, media_type="text/xml")


def _to_ws_url(http_url: str) -> str:
    if http_url.startswith("https://"):
        return "wss://" + http_url.removeprefix("https://")
    if http_url.startswith("http://"):
        return "ws://" + http_url.removeprefix("http://")
    return http_url


def _relay_ws_url(request: Request) -> str:
    settings = get_settings()
    if settings.public_domain:
        return f"wss://{settings.public_domain}/ws"
    # Fallback to request host. This may not work behind proxies; prefer PUBLIC_DOMAIN.
    return _to_ws_url(str(request.url_for("conversation_relay_ws")))


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def _twiml_conversation_relay(*, ws_url: str, welcome_greeting: str) -> str:
    url = _attr(ws_url)
    greeting = _attr(welcome_greeting)
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<Response>"
        "<Connect>"
        f"<ConversationRelay url=\"{url}\" welcomeGreeting=\"{greeting}\" />"
        "</Connect>"
        "</Response>"
    )


@router.api_route("/twiml", methods=["GET", "POST"])
async def twiml(request: Request) -> Response:
    settings = get_settings()
    return _twiml_response(
        _twiml_conversation_relay(
            ws_url=_relay_ws_url(request),
            welcome_greeting=settings.welcome_greeting,
        )
    )


@router.websocket("/ws", name="conversation_relay_ws")
async def conversation_relay_ws(
    websocket: WebSocket,
    store: SessionStore = Depends(get_session_store),
    llm: BaseLLMClient = Depends(get_llm_client),
    tools: ToolInvocationBridge | None = Depends(get_tool_bridge),
) -> None:
    await websocket.accept()

    async def send(message: TextMessage) -> None:
        await websocket.send_text(message.to_json())

    dispatcher = TransportDispatcher(store, build_relay(llm, tools), send)
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))
            # Binary frames go through the same decoding and are rejected there.
            await dispatcher.handle_raw(frame.get("text") or frame.get("bytes") or b"")
    except WebSocketDisconnect as exc:
        LOGGER.debug("Call %s disconnected with code %s", dispatcher.call_id, exc.code)
    finally:
        await dispatcher.close()
