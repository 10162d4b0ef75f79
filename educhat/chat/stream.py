"""Server-sent event framing and decoding of chat stream payloads."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import ValidationError

from .models import Citation
from .schemas import CitationSchema

LOGGER = logging.getLogger(__name__)

DEFAULT_EVENT_TYPE = "message"
STRUCTURED_KEYS = frozenset({"content", "sources", "done"})


@dataclass(slots=True)
class ServerSentEvent:
    """One dispatched server-sent event."""

    data: str
    event: str = DEFAULT_EVENT_TYPE
    id: str | None = None
    retry: int | None = None


@dataclass(slots=True)
class SSEDecoder:
    """Incremental line decoder following the event-stream format.

    Feed it lines without their terminators; a blank line dispatches the
    pending event.
    """

    _event: str = ""
    _data: list[str] = field(default_factory=list)
    _last_event_id: str | None = None
    _retry: int | None = None

    def decode(self, line: str) -> ServerSentEvent | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self._retry = int(value)
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            self._event = ""
            return None
        event = ServerSentEvent(
            data="\n".join(self._data),
            event=self._event or DEFAULT_EVENT_TYPE,
            id=self._last_event_id,
            retry=self._retry,
        )
        self._event = ""
        self._data = []
        self._retry = None
        return event


@dataclass(frozen=True, slots=True)
class StructuredFrame:
    """JSON frame carrying any of ``content``, ``sources`` and ``done``."""

    content: str | None = None
    sources: tuple[Citation, ...] | None = None
    done: bool = False


@dataclass(frozen=True, slots=True)
class RawFrame:
    """Payload that is not a structured frame; appended verbatim."""

    text: str


StreamFrame = Union[StructuredFrame, RawFrame]


def _load_object(payload: str) -> dict[str, Any] | None:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _decode_sources(raw: Any) -> tuple[Citation, ...] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        LOGGER.warning("Ignoring sources frame | reason=not-a-list type=%s", type(raw).__name__)
        return None
    try:
        items = [CitationSchema.model_validate(entry) for entry in raw]
    except ValidationError as exc:
        LOGGER.warning("Ignoring sources frame | reason=invalid-citation errors=%d", exc.error_count())
        return None
    return tuple(item.to_citation() for item in items)


def decode_frame(payload: str) -> StreamFrame | None:
    """Decode one event payload into a structured or raw frame.

    Returns ``None`` for empty payloads, which carry nothing to apply.
    """

    if not payload:
        return None
    data = _load_object(payload)
    if data is None or not STRUCTURED_KEYS.intersection(data):
        return RawFrame(payload)

    content = data.get("content")
    return StructuredFrame(
        content=None if content is None else str(content),
        sources=_decode_sources(data.get("sources")),
        done=bool(data.get("done")),
    )


__all__ = [
    "DEFAULT_EVENT_TYPE",
    "ServerSentEvent",
    "SSEDecoder",
    "StructuredFrame",
    "RawFrame",
    "StreamFrame",
    "decode_frame",
]
