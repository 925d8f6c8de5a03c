"""FastAPI routes for inspecting live calls."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_session_store
from api.schemas import ActiveCallsResponse, TranscriptResponse
from conversation.errors import RelayError
from conversation.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

router = APIRouter()


@router.get("/calls", response_model=ActiveCallsResponse)
async def list_calls(store: SessionStore = Depends(get_session_store)) -> ActiveCallsResponse:
    return ActiveCallsResponse(call_ids=await store.list_ids())


@router.get("/calls/{call_id}/transcript", response_model=TranscriptResponse)
async def get_transcript(
    call_id: str,
    store: SessionStore = Depends(get_session_store),
) -> TranscriptResponse:
    try:
        session = await store.get(call_id)
        turns = await store.snapshot(call_id)
    except RelayError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return TranscriptResponse(call_id=call_id, relay_active=session.relay_active, turns=turns)
