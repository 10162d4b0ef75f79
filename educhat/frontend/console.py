"""Per-visitor state behind the Gradio console."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx

from ..catalog.client import CatalogClient
from ..catalog.selector import ContextSelector
from ..chat.exceptions import StreamCancelledError
from ..chat.models import AcademicContext, Citation, Message
from ..chat.references import ClipboardWriter, copy_reference
from ..chat.service import ChatService
from ..config import Settings
from ..dependencies import build_catalog_client, build_chat_service, create_http_client
from ..history import ChatHistory
from .rendering import to_chatbot_messages

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[Settings], httpx.AsyncClient]


class ChatConsole:
    """Bundle the cascade, the active chat service and the history of one visitor."""

    def __init__(self, settings: Settings, *, client_factory: ClientFactory = create_http_client) -> None:
        self.settings = settings
        self._client_factory = client_factory
        self._client: httpx.AsyncClient | None = None
        self._selector: ContextSelector | None = None
        self.service: ChatService | None = None
        self.context: AcademicContext | None = None
        self.history = ChatHistory()
        self._changed = asyncio.Event()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = self._client_factory(self.settings)
        return self._client

    @property
    def selector(self) -> ContextSelector:
        if self._selector is None:
            catalog: CatalogClient = build_catalog_client(self.client)
            self._selector = ContextSelector(catalog)
        return self._selector

    @property
    def busy(self) -> bool:
        return self.service is not None and self.service.in_flight

    async def load_majors(self) -> list[str]:
        return [option.name for option in await self.selector.load_majors()]

    async def select_major(self, major: str) -> list[tuple[str, str]]:
        options = await self.selector.select_major(major)
        return [(option.name, option.id) for option in options]

    async def select_year(self, year_id: str) -> list[str]:
        options = await self.selector.select_year(year_id)
        return [option.name for option in options]

    async def start_session(self, course: str | None = None) -> ChatService:
        """Open a fresh session for ``course`` or, without one, for the current context."""

        if course is not None:
            self.context = self.selector.select_course(course)
        if self.context is None:
            raise ValueError("No academic context selected")
        if self.service is not None:
            await self.service.aclose()
        self.service = build_chat_service(self.context, self.client, self.settings, on_update=self._on_update)
        self.history.record(self.service.session)
        return self.service

    def _on_update(self, _message: Message) -> None:
        self._changed.set()

    async def ask(self, query: str) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield chat snapshots while the answer streams in.

        :class:`RequestFailedError` from the fallback path propagates once the
        last snapshot has been produced. A stream torn down by a new session
        simply ends the exchange.
        """

        service = self.service
        if service is None:
            raise ValueError("No chat session started")
        task = asyncio.ensure_future(service.ask(query))
        try:
            while not task.done():
                waiter = asyncio.ensure_future(self._changed.wait())
                await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
                waiter.cancel()
                self._changed.clear()
                yield to_chatbot_messages(service.session)
            try:
                task.result()
            except StreamCancelledError:
                LOGGER.info("Exchange ended by teardown | session=%s", service.session.session_id)
        finally:
            if not task.done():
                task.cancel()
            self.history.record(service.session)

    def last_citations(self) -> list[Citation]:
        if self.service is None:
            return []
        for message in reversed(self.service.session.messages):
            if not message.is_user:
                return list(message.sources or ())
        return []

    def copy_citation(self, index: int, clipboard: ClipboardWriter | None = None) -> str:
        citations = self.last_citations()
        if not 0 <= index < len(citations):
            raise IndexError(f"No citation at position {index}")
        return copy_reference(citations[index], clipboard)

    async def aclose(self) -> None:
        if self.service is not None:
            await self.service.aclose()
            self.service = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["ChatConsole", "ClientFactory"]
