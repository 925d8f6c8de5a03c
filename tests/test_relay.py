from __future__ import annotations

import asyncio

from fakes import HANG, RecordingSender, ScriptedLLM, joke_bridge

from conversation.errors import ProviderStreamError, ToolExecutionFailedError, UnknownToolError
from conversation.relay import StreamingRelay
from conversation.schemas import UserTurn
from conversation.session_store import CallSession
from llm.base import ContentBlockEnd, StreamEnd, TextDelta, ToolCallArguments, ToolCallStart

ERROR_MESSAGE = "Sorry, something went wrong."


def _relay(llm, tools=None) -> StreamingRelay:
    return StreamingRelay(llm, tools, system_prompt="SYS", error_message=ERROR_MESSAGE)


def _session(*prompts: str) -> CallSession:
    session = CallSession(call_id="CA1")
    session.transcript.extend(UserTurn(content=prompt) for prompt in prompts)
    return session


def _tool_call(call_id="call_1", name="get_joke", arguments="{}"):
    return [
        ToolCallStart(index=0, call_id=call_id, name=name),
        ToolCallArguments(index=0, fragment=arguments),
        ContentBlockEnd(index=0),
    ]


def test_text_only_relay_commits_concatenation_and_one_terminal_chunk():
    llm = ScriptedLLM([TextDelta("Hello"), TextDelta(", "), TextDelta("world."), StreamEnd("stop")])
    session = _session("Hi")
    send = RecordingSender()

    asyncio.run(_relay(llm).run(session, send))

    assert send.pairs == [("Hello", False), (", ", False), ("world.", False), ("", True)]
    assert [turn.role for turn in session.transcript] == ["user", "assistant"]
    assert session.transcript[-1].content == "Hello, world."
    assert llm.closed == 1


def test_relay_sends_history_with_system_prompt_and_tool_declarations():
    llm = ScriptedLLM([TextDelta("Ok"), StreamEnd("stop")])

    asyncio.run(_relay(llm, joke_bridge()).run(_session("Hi"), RecordingSender()))

    messages, tools = llm.requests[0]
    assert messages == [{"role": "system", "content": "SYS"}, {"role": "user", "content": "Hi"}]
    assert tools[0]["function"]["name"] == "get_joke"


def test_empty_stream_still_ends_the_utterance():
    llm = ScriptedLLM([StreamEnd("stop")])
    session = _session("Hi")
    send = RecordingSender()

    asyncio.run(_relay(llm).run(session, send))

    assert send.pairs == [("", True)]
    assert len(session.transcript) == 1


def test_tool_call_is_spoken_as_its_own_utterance_and_spliced_into_transcript():
    llm = ScriptedLLM([*_tool_call(), StreamEnd("tool_calls")])
    session = _session("Tell me a joke")
    send = RecordingSender()

    asyncio.run(_relay(llm, joke_bridge("A joke.")).run(session, send))

    assert send.pairs == [("A joke.", True)]
    roles = [turn.role for turn in session.transcript]
    assert roles == ["user", "tool_invocation", "tool_result"]
    assert session.transcript[1].call_id == session.transcript[2].call_id == "call_1"


def test_text_before_tool_call_is_closed_and_committed_first():
    llm = ScriptedLLM([TextDelta("Sure, "), *_tool_call(), TextDelta("Another?"), StreamEnd("stop")])
    session = _session("Joke please")
    send = RecordingSender()

    asyncio.run(_relay(llm, joke_bridge("A joke.")).run(session, send))

    assert send.pairs == [
        ("Sure, ", False),
        ("", True),
        ("A joke.", True),
        ("Another?", False),
        ("", True),
    ]
    assert [turn.role for turn in session.transcript] == [
        "user",
        "assistant",
        "tool_invocation",
        "tool_result",
        "assistant",
    ]
    assert session.transcript[1].content == "Sure, "
    assert session.transcript[4].content == "Another?"


def test_unknown_tool_is_surfaced_as_error_utterance():
    llm = ScriptedLLM([*_tool_call(name="book_flight"), StreamEnd("tool_calls")])
    session = _session("Book me a flight")
    send = RecordingSender()

    asyncio.run(_relay(llm, joke_bridge()).run(session, send))

    assert send.pairs == [(UnknownToolError.default_detail, True)]
    assert [turn.role for turn in session.transcript] == ["user"]


def test_failed_tool_is_surfaced_as_error_utterance():
    llm = ScriptedLLM([*_tool_call(arguments="{oops"), StreamEnd("tool_calls")])
    session = _session("Joke")
    send = RecordingSender()

    asyncio.run(_relay(llm, joke_bridge()).run(session, send))

    assert send.pairs == [(ToolExecutionFailedError.default_detail, True)]
    assert [turn.role for turn in session.transcript] == ["user"]


def test_provider_error_discards_partial_text_and_apologizes():
    llm = ScriptedLLM([TextDelta("Half an ans"), ProviderStreamError("connection reset")])
    session = _session("Question")
    send = RecordingSender()

    asyncio.run(_relay(llm).run(session, send))

    assert send.pairs == [("Half an ans", False), (ERROR_MESSAGE, True)]
    assert [turn.role for turn in session.transcript] == ["user"]


def test_cancelled_relay_commits_delivered_text_without_terminal_chunk():
    llm = ScriptedLLM([TextDelta("Paris is the capital"), HANG, TextDelta(" never sent")])
    session = _session("Capital of France?")
    send = RecordingSender()

    async def scenario():
        task = asyncio.create_task(_relay(llm).run(session, send))
        await send.first_sent.wait()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return task

    task = asyncio.run(scenario())

    assert task.cancelled()
    assert send.pairs == [("Paris is the capital", False)]
    assert session.transcript[-1].content == "Paris is the capital"
    assert llm.closed == 1


def test_cancel_during_send_commits_only_delivered_text():
    llm = ScriptedLLM([TextDelta("Delivered. "), TextDelta("Stuck in transit"), StreamEnd("stop")])
    session = _session("Hi")
    delivered: list[str] = []
    send_blocked = asyncio.Event()

    async def send(message):
        if delivered:
            send_blocked.set()
            await asyncio.Event().wait()
        delivered.append(message.token)

    async def scenario():
        task = asyncio.create_task(_relay(llm).run(session, send))
        await send_blocked.wait()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(scenario())

    assert delivered == ["Delivered. "]
    assert session.transcript[-1].content == "Delivered. "
