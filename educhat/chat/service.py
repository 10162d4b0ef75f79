"""Chat service orchestrating the streaming and fallback paths."""
from __future__ import annotations

import logging
from types import TracebackType

import httpx

from ..config import BackendSettings
from .exceptions import ChannelError
from .fallback import FallbackRequestClient
from .models import AcademicContext, Message, Session
from .streaming import MessageListener, StreamingChatClient

LOGGER = logging.getLogger(__name__)


class ChatService:
    """Run one exchange at a time for a session.

    The answer is streamed first; when the push channel fails the same query
    is sent once through the single-shot request. :class:`RequestFailedError`
    from that request propagates to the caller for display.
    """

    def __init__(
        self,
        session: Session,
        streaming: StreamingChatClient,
        fallback: FallbackRequestClient,
    ) -> None:
        self.session = session
        self.streaming = streaming
        self.fallback = fallback
        self._in_flight = False

    @classmethod
    def for_context(
        cls,
        context: AcademicContext,
        client: httpx.AsyncClient,
        settings: BackendSettings,
        *,
        on_update: MessageListener | None = None,
    ) -> "ChatService":
        session = Session(context=context)
        return cls(
            session,
            StreamingChatClient(session, client, settings, on_update=on_update),
            FallbackRequestClient(session, client, settings),
        )

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def ask(self, query: str) -> Message | None:
        """Return the produced answer, or ``None`` when the query is ignored."""

        if self._in_flight:
            LOGGER.debug("Exchange ignored | session=%s reason=in-flight", self.session.session_id)
            return None
        self._in_flight = True
        try:
            try:
                return await self.streaming.submit(query)
            except ChannelError as exc:
                LOGGER.info(
                    "Falling back to question request | session=%s reason=%s",
                    self.session.session_id,
                    exc.reason,
                )
            return await self.fallback.send(query)
        finally:
            self._in_flight = False

    async def aclose(self) -> None:
        await self.streaming.aclose()

    async def __aenter__(self) -> "ChatService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = ["ChatService"]
