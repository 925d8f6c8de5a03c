"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from conversation.schemas import Turn


class ActiveCallsResponse(BaseModel):
    call_ids: list[str]


class TranscriptResponse(BaseModel):
    call_id: str
    relay_active: bool = Field(description="Whether a completion is currently streaming.")
    turns: list[Turn]
