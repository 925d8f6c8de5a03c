"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules. Everything is built
lazily so importing the app never needs provider credentials.
"""

from __future__ import annotations

from functools import lru_cache

from config.settings import get_settings
from conversation.relay import StreamingRelay
from conversation.session_store import SessionStore
from conversation.tools import ToolInvocationBridge, build_tool_registry
from llm.base import BaseLLMClient
from llm.factory import build_llm_client
from prompts.loader import load_prompt


@lru_cache(maxsize=1)
def _session_store_factory() -> SessionStore:
    return SessionStore()


def get_session_store() -> SessionStore:
    return _session_store_factory()


@lru_cache(maxsize=1)
def _llm_factory() -> BaseLLMClient:
    return build_llm_client()


def get_llm_client() -> BaseLLMClient:
    return _llm_factory()


def get_tool_bridge() -> ToolInvocationBridge | None:
    if not get_settings().tools_enabled:
        return None
    return ToolInvocationBridge(build_tool_registry())


def build_relay(llm: BaseLLMClient, tools: ToolInvocationBridge | None) -> StreamingRelay:
    settings = get_settings()
    return StreamingRelay(
        llm,
        tools,
        system_prompt=load_prompt(settings.system_prompt_file),
        error_message=settings.provider_error_message,
    )
