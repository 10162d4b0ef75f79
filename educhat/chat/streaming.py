"""Streaming chat client accumulating pushed fragments into one answer."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing
from enum import Enum
from time import perf_counter
from types import TracebackType
from typing import Any

import httpx

from ..config import BackendSettings
from .channel import PushChannel
from .exceptions import (
    ChannelError,
    ConcurrentSubmissionError,
    EmptyQueryError,
    StreamCancelledError,
)
from .models import Message, Session
from .params import question_params
from .stream import RawFrame, StreamFrame, decode_frame

LOGGER = logging.getLogger(__name__)

MessageListener = Callable[[Message], Any]


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StreamingChatClient:
    """Own one session's push channel and its single streaming target.

    ``submit`` appends the user turn and an empty assistant placeholder, then
    applies pushed frames to the placeholder until the backend signals
    completion. A failing channel leaves the placeholder with its partial
    text and raises :class:`ChannelError` so the caller can fall back.
    """

    def __init__(
        self,
        session: Session,
        client: httpx.AsyncClient,
        settings: BackendSettings,
        *,
        on_update: MessageListener | None = None,
    ) -> None:
        self._session = session
        self._client = client
        self._settings = settings
        self._on_update = on_update
        self._state = StreamState.IDLE
        self._channel: PushChannel | None = None
        self._pump: asyncio.Future[None] | None = None
        self._torn_down = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._state is StreamState.STREAMING

    @property
    def channel_open(self) -> bool:
        return self._channel is not None and self._channel.is_open

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._settings.request_timeout,
            connect=self._settings.connect_timeout,
            read=self._settings.stream_read_timeout,
        )

    def _check_submission(self, query: str) -> None:
        if not query.strip():
            raise EmptyQueryError("Query is empty")
        if self._session.is_streaming or self._pump is not None:
            raise ConcurrentSubmissionError(f"Session {self._session.session_id} is already streaming")

    def _notify(self, message: Message) -> None:
        if self._on_update is not None:
            self._on_update(message)

    async def submit(self, query: str) -> Message | None:
        """Stream the answer to ``query``; ``None`` when the submission is ignored."""

        try:
            self._check_submission(query)
        except (EmptyQueryError, ConcurrentSubmissionError) as exc:
            LOGGER.debug("Submission ignored | session=%s reason=%s", self._session.session_id, exc)
            return None

        self._notify(self._session.add_user_message(query))
        placeholder = self._session.begin_stream()
        self._state = StreamState.STREAMING
        self._notify(placeholder)

        await self._release_channel()
        self._torn_down = False
        self._pump = asyncio.ensure_future(self._consume(query, placeholder))
        try:
            await self._pump
        except asyncio.CancelledError:
            # A pump cancelled before its first step never reaches its own cleanup.
            if self._session.active_stream_id == placeholder.id:
                self._session.end_stream()
                self._state = StreamState.CANCELLED
            if self._torn_down:
                raise StreamCancelledError(f"Stream for message {placeholder.id} was torn down") from None
            raise
        finally:
            self._pump = None
        return placeholder

    async def _consume(self, query: str, placeholder: Message) -> None:
        channel = PushChannel(
            self._client,
            self._settings.stream_path,
            question_params(query, self._session.context),
            timeout=self._timeout(),
        )
        self._channel = channel
        session_id = self._session.session_id
        LOGGER.info(
            "Chat stream started | session=%s message=%s query_chars=%d",
            session_id,
            placeholder.id,
            len(query),
        )
        start_time = perf_counter()
        frame_count = 0
        outcome = StreamState.FAILED
        try:
            async with channel:
                async with aclosing(channel.events()) as events:
                    async for event in events:
                        frame = decode_frame(event.data)
                        if frame is None:
                            continue
                        frame_count += 1
                        if self._apply(frame, placeholder):
                            await channel.close()
                            outcome = StreamState.COMPLETED
                            return
            raise ChannelError("Stream closed before completion")
        except ChannelError as exc:
            LOGGER.warning(
                "Chat stream failed | session=%s message=%s frames=%d reason=%s",
                session_id,
                placeholder.id,
                frame_count,
                exc.reason,
            )
            raise
        except asyncio.CancelledError:
            outcome = StreamState.CANCELLED
            raise
        finally:
            if self._channel is channel:
                self._channel = None
            self._session.end_stream()
            self._state = outcome
            LOGGER.info(
                "Chat stream finished | session=%s state=%s duration=%.2fs frames=%d characters=%d",
                session_id,
                outcome.value,
                perf_counter() - start_time,
                frame_count,
                len(placeholder.text),
            )

    def _apply(self, frame: StreamFrame, message: Message) -> bool:
        """Apply one frame to the streaming target; ``True`` once it is terminal."""

        if isinstance(frame, RawFrame):
            message.append(frame.text)
            self._notify(message)
            return False

        changed = False
        if frame.content:
            message.append(frame.content)
            changed = True
        if frame.sources is not None:
            message.replace_sources(frame.sources)
            changed = True
            LOGGER.debug("Chat stream sources | message=%s citations=%d", message.id, len(frame.sources))
        if changed:
            self._notify(message)
        return frame.done

    async def _release_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            await channel.close()

    async def aclose(self) -> None:
        """Tear down the client, cancelling any stream still in flight."""

        pump = self._pump
        if pump is not None and not pump.done():
            self._torn_down = True
            pump.cancel()
            await asyncio.wait({pump})
        await self._release_channel()

    async def __aenter__(self) -> "StreamingChatClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = ["MessageListener", "StreamState", "StreamingChatClient"]
