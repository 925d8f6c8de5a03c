from __future__ import annotations

from conversation.interrupts import find_interrupted_turn, reconcile_interrupt
from conversation.schemas import AssistantTurn, ToolInvocationTurn, ToolResultTurn, UserTurn


def _contents(transcript):
    return [(turn.role, getattr(turn, "content", None)) for turn in transcript]


def test_reconcile_truncates_last_assistant_turn_at_spoken_prefix():
    transcript = [
        UserTurn(content="Tell me about France"),
        AssistantTurn(content="France is a country in Europe. Its capital is Paris."),
    ]

    reconciled = reconcile_interrupt(transcript, "France is a country")

    assert _contents(reconciled) == [
        ("user", "Tell me about France"),
        ("assistant", "France is a country"),
    ]
    # The input transcript is left untouched.
    assert transcript[1].content.endswith("Paris.")


def test_reconcile_is_identity_when_prefix_was_never_generated():
    transcript = [
        UserTurn(content="Hi"),
        AssistantTurn(content="Hello there, how can I help?"),
        UserTurn(content="What time is it?"),
    ]

    assert reconcile_interrupt(transcript, "Goodbye") == transcript


def test_reconcile_ignores_prefix_found_only_in_user_turns():
    transcript = [UserTurn(content="Paris please"), AssistantTurn(content="Sure thing.")]

    assert reconcile_interrupt(transcript, "Paris") == transcript


def test_reconcile_picks_rightmost_matching_assistant_turn():
    transcript = [
        UserTurn(content="Tell me about Paris"),
        AssistantTurn(content="Paris is great"),
        UserTurn(content="And more?"),
        AssistantTurn(content="Paris is the capital"),
    ]

    reconciled = reconcile_interrupt(transcript, "Paris")

    assert reconciled[1].content == "Paris is great"
    assert reconciled[3].content == "Paris"


def test_reconcile_drops_later_assistant_turns_but_keeps_tool_turns():
    transcript = [
        UserTurn(content="Joke please"),
        AssistantTurn(content="Sure, here is one for you."),
        ToolInvocationTurn(call_id="call_1", name="get_joke"),
        ToolResultTurn(call_id="call_1", name="get_joke", content="A joke."),
        AssistantTurn(content="Want another?"),
    ]

    reconciled = reconcile_interrupt(transcript, "Sure, here")

    assert [turn.role for turn in reconciled] == ["user", "assistant", "tool_invocation", "tool_result"]
    assert reconciled[1].content == "Sure, here"
    assert reconciled[2].call_id == reconciled[3].call_id == "call_1"


def test_reconcile_cuts_at_first_occurrence_within_the_turn():
    transcript = [AssistantTurn(content="one two one two three")]

    reconciled = reconcile_interrupt(transcript, "one two")

    assert reconciled[0].content == "one two"


def test_empty_prefix_is_a_no_op():
    transcript = [AssistantTurn(content="Hello")]

    assert find_interrupted_turn(transcript, "") is None
    assert reconcile_interrupt(transcript, "") == transcript
