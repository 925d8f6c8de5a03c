"""Transcript reconciliation for callers talking over the assistant.

Twilio reports how much of the assistant's utterance was actually played before the
caller interrupted. Whatever was generated past that point was never heard, so the
transcript is rewritten to match what the caller experienced.
"""

from __future__ import annotations

from collections.abc import Sequence

from conversation.schemas import AssistantTurn, Turn


def find_interrupted_turn(transcript: Sequence[Turn], spoken_prefix: str) -> int | None:
    """Index of the most recent assistant turn containing ``spoken_prefix``."""

    if not spoken_prefix:
        return None
    for index in range(len(transcript) - 1, -1, -1):
        turn = transcript[index]
        if isinstance(turn, AssistantTurn) and spoken_prefix in turn.content:
            return index
    return None


def reconcile_interrupt(transcript: Sequence[Turn], spoken_prefix: str) -> list[Turn]:
    """Return the transcript as heard by the caller.

    The matched assistant turn is cut right after ``spoken_prefix``; later assistant
    turns are dropped while later tool turns are kept. Without a match the
    transcript is returned unchanged.
    """

    index = find_interrupted_turn(transcript, spoken_prefix)
    if index is None:
        return list(transcript)

    interrupted = transcript[index]
    end = interrupted.content.find(spoken_prefix) + len(spoken_prefix)
    reconciled: list[Turn] = list(transcript[:index])
    reconciled.append(interrupted.model_copy(update={"content": interrupted.content[:end]}))
    reconciled.extend(
        turn for turn in transcript[index + 1 :] if not isinstance(turn, AssistantTurn)
    )
    return reconciled
