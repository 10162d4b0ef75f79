"""Server-push channel carrying one streamed answer."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import AbstractAsyncContextManager
from types import TracebackType

import httpx

from .exceptions import ChannelError
from .stream import DEFAULT_EVENT_TYPE, ServerSentEvent, SSEDecoder

LOGGER = logging.getLogger(__name__)

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"


class PushChannel:
    """One ``GET`` event-stream request, owned by a single streaming client.

    ``open`` acquires the connection and validates the response; ``close`` is
    idempotent and safe on every exit path. Transport failures surface as
    :class:`ChannelError`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: Mapping[str, str],
        *,
        timeout: httpx.Timeout | None = None,
    ) -> None:
        self._client = client
        self._path = path
        self._params = dict(params)
        self._timeout = timeout
        self._stream: AbstractAsyncContextManager[httpx.Response] | None = None
        self._response: httpx.Response | None = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._response is not None and not self._closed

    async def open(self) -> None:
        if self._closed:
            raise ChannelError("Channel already closed")
        request_kwargs = {
            "params": self._params,
            "headers": {"Accept": EVENT_STREAM_MEDIA_TYPE, "Cache-Control": "no-cache"},
        }
        if self._timeout is not None:
            request_kwargs["timeout"] = self._timeout
        self._stream = self._client.stream("GET", self._path, **request_kwargs)
        try:
            self._response = await self._stream.__aenter__()
        except httpx.HTTPError as exc:
            self._stream = None
            self._closed = True
            raise ChannelError(f"Failed to open stream at {self._path}: {exc}", cause=exc) from exc

        response = self._response
        if not response.is_success:
            await self.close()
            raise ChannelError(
                f"Stream request failed with status {response.status_code}",
                status=response.status_code,
            )
        media_type = response.headers.get("content-type", "").split(";", 1)[0].strip().lower()
        if media_type != EVENT_STREAM_MEDIA_TYPE:
            await self.close()
            raise ChannelError(f"Unexpected stream content type {media_type or 'none'!r}", status=response.status_code)

    async def events(self) -> AsyncIterator[ServerSentEvent]:
        """Yield ``message`` events until the server closes the stream."""

        if self._response is None or self._closed:
            raise ChannelError("Channel is not open")
        decoder = SSEDecoder()
        try:
            async for line in self._response.aiter_lines():
                event = decoder.decode(line.rstrip("\r\n"))
                if event is not None:
                    if event.event != DEFAULT_EVENT_TYPE:
                        LOGGER.debug("Skipping named stream event | event=%s", event.event)
                        continue
                    yield event
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise ChannelError(f"Stream interrupted: {exc}", cause=exc) from exc

    async def close(self) -> None:
        if self._closed and self._stream is None:
            return
        self._closed = True
        stream, self._stream = self._stream, None
        self._response = None
        if stream is not None:
            await stream.__aexit__(None, None, None)

    async def __aenter__(self) -> "PushChannel":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = ["EVENT_STREAM_MEDIA_TYPE", "PushChannel"]
