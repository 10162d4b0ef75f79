"""Streaming chat client tests."""
from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from educhat.chat.exceptions import ChannelError, StreamCancelledError
from educhat.chat.models import AcademicContext, Author, Citation, Message, MessageState, Session
from educhat.chat.streaming import StreamingChatClient, StreamState


def _frame(payload: Any) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


async def _wait_for_text(message: Message, text: str) -> None:
    while message.text != text:
        await asyncio.sleep(0)


def test_end_to_end_mutex_answer(settings, backend, make_client, context: AcademicContext) -> None:
    backend.frames = [
        {"content": "Un "},
        {"content": "mutex est..."},
        {"sources": [{"title": "Ch.4", "document": "cours.pdf", "page": 12}]},
        {"done": True},
    ]
    session = Session(context=context)

    async def _run() -> None:
        async with make_client() as client:
            streaming = StreamingChatClient(session, client, settings.backend)
            answer = await streaming.submit("Qu'est-ce qu'un mutex ?")

            assert answer is not None
            assert answer.author is Author.ASSISTANT
            assert answer.text == "Un mutex est..."
            assert answer.sources == (Citation(title="Ch.4", document="cours.pdf", page=12),)
            assert answer.state is MessageState.FINAL
            assert streaming.state is StreamState.COMPLETED
            assert not streaming.channel_open
            assert not streaming.is_streaming
            assert not session.is_streaming

    asyncio.run(_run())

    assert [message.author for message in session.messages] == [Author.USER, Author.ASSISTANT]
    [params] = backend.calls_to("/chat/stream")
    assert params == {
        "query": "Qu'est-ce qu'un mutex ?",
        "major": "SI",
        "year": "3",
        "course": "programation_systeme",
    }


def test_zero_fragments_produce_empty_answer(settings, backend, make_client, context) -> None:
    backend.frames = [{"done": True}]
    session = Session(context=context)

    async def _run() -> Message | None:
        async with make_client() as client:
            return await StreamingChatClient(session, client, settings.backend).submit("Bonjour")

    answer = asyncio.run(_run())

    assert answer is not None
    assert answer.text == ""
    assert answer.sources is None


def test_empty_query_opens_nothing(settings, backend, make_client, context) -> None:
    session = Session(context=context)

    async def _run() -> Message | None:
        async with make_client() as client:
            return await StreamingChatClient(session, client, settings.backend).submit("   ")

    assert asyncio.run(_run()) is None
    assert session.messages == ()
    assert backend.calls == []


def test_structured_and_raw_frames_share_one_channel(settings, backend, make_client, context) -> None:
    backend.frames = [{"content": "abc"}, "xyz", {"done": True}]
    session = Session(context=context)

    async def _run() -> Message | None:
        async with make_client() as client:
            return await StreamingChatClient(session, client, settings.backend).submit("Mélange")

    answer = asyncio.run(_run())

    assert answer is not None
    assert answer.text == "abcxyz"


def test_sources_before_content_are_kept(settings, backend, make_client, context) -> None:
    backend.frames = [
        {"sources": [{"title": "Intro", "document": "td1.pdf", "page": "iv"}]},
        {"content": "Voir le TD."},
        {"done": True},
    ]
    session = Session(context=context)
    updates: list[str] = []

    async def _run() -> Message | None:
        async with make_client() as client:
            streaming = StreamingChatClient(
                session, client, settings.backend, on_update=lambda message: updates.append(message.text)
            )
            return await streaming.submit("Question")

    answer = asyncio.run(_run())

    assert answer is not None
    assert answer.text == "Voir le TD."
    assert answer.sources == (Citation(title="Intro", document="td1.pdf", page="iv"),)
    assert updates[0] == "Question"
    assert updates[-1] == "Voir le TD."


def test_partial_text_survives_channel_error(settings, scripted, make_client, context) -> None:
    scripted.head = [_frame({"content": "Hel"}), _frame({"content": "lo"})]
    scripted.error = httpx.ReadError("connection reset")
    session = Session(context=context)

    async def _run() -> StreamingChatClient:
        async with make_client(scripted.transport()) as client:
            streaming = StreamingChatClient(session, client, settings.backend)
            with pytest.raises(ChannelError):
                await streaming.submit("Dis bonjour")
            return streaming

    streaming = asyncio.run(_run())

    placeholder = session.messages[-1]
    assert placeholder.text == "Hello"
    assert placeholder.state is MessageState.FINAL
    assert streaming.state is StreamState.FAILED
    assert not streaming.channel_open
    assert not session.is_streaming


def test_stream_closed_without_done_is_a_channel_error(settings, backend, make_client, context) -> None:
    backend.frames = [{"content": "incomplet"}]
    session = Session(context=context)

    async def _run() -> None:
        async with make_client() as client:
            with pytest.raises(ChannelError, match="before completion"):
                await StreamingChatClient(session, client, settings.backend).submit("Question")

    asyncio.run(_run())

    assert session.messages[-1].text == "incomplet"


def test_rejected_stream_is_a_channel_error(settings, backend, make_client, context) -> None:
    backend.stream_status = 503
    session = Session(context=context)

    async def _run() -> None:
        async with make_client() as client:
            with pytest.raises(ChannelError) as excinfo:
                await StreamingChatClient(session, client, settings.backend).submit("Question")
            assert excinfo.value.status == 503

    asyncio.run(_run())


def test_unexpected_content_type_is_a_channel_error(settings, scripted, make_client, context) -> None:
    scripted.content_type = "application/json"
    scripted.head = ['{"answer": "not a stream"}']
    session = Session(context=context)

    async def _run() -> None:
        async with make_client(scripted.transport()) as client:
            with pytest.raises(ChannelError, match="content type"):
                await StreamingChatClient(session, client, settings.backend).submit("Question")

    asyncio.run(_run())


def test_named_events_and_comments_are_skipped(settings, scripted, make_client, context) -> None:
    scripted.head = [
        ": keep-alive\n\n",
        "event: progress\ndata: 50%\n\n",
        _frame({"content": "ok"}),
        _frame({"done": True}),
    ]
    session = Session(context=context)

    async def _run() -> Message | None:
        async with make_client(scripted.transport()) as client:
            return await StreamingChatClient(session, client, settings.backend).submit("Question")

    answer = asyncio.run(_run())

    assert answer is not None
    assert answer.text == "ok"


def test_concurrent_submit_is_ignored(settings, scripted, make_client, context) -> None:
    scripted.head = [_frame({"content": "Hel"})]
    scripted.tail = [_frame({"content": "lo"}), _frame({"done": True})]
    session = Session(context=context)

    async def _run() -> None:
        scripted.gate = asyncio.Event()
        async with make_client(scripted.transport()) as client:
            streaming = StreamingChatClient(session, client, settings.backend)
            first = asyncio.ensure_future(streaming.submit("Première"))
            await asyncio.sleep(0)
            await _wait_for_text(session.messages[-1], "Hel")
            assert streaming.is_streaming
            assert streaming.channel_open

            assert await streaming.submit("Deuxième") is None

            scripted.gate.set()
            answer = await first
            assert answer is not None
            assert answer.text == "Hello"

    asyncio.run(_run())

    assert [message.text for message in session.messages] == ["Première", "Hello"]
    assert len(scripted.requests_to("/chat/stream")) == 1


def test_teardown_cancels_in_flight_stream(settings, scripted, make_client, context) -> None:
    scripted.head = [_frame({"content": "Partiel"})]
    session = Session(context=context)

    async def _run() -> StreamingChatClient:
        scripted.gate = asyncio.Event()
        async with make_client(scripted.transport()) as client:
            streaming = StreamingChatClient(session, client, settings.backend)
            pending = asyncio.ensure_future(streaming.submit("Question"))
            await asyncio.sleep(0)
            await _wait_for_text(session.messages[-1], "Partiel")

            await streaming.aclose()
            assert not streaming.channel_open

            with pytest.raises(StreamCancelledError):
                await pending
            return streaming

    streaming = asyncio.run(_run())

    assert streaming.state is StreamState.CANCELLED
    assert session.messages[-1].text == "Partiel"
    assert session.messages[-1].state is MessageState.FINAL
    assert not session.is_streaming
