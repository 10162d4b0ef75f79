"""Session and message model shared by the streaming and fallback paths."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from .exceptions import ConcurrentSubmissionError, EmptyQueryError, MessageFinalizedError

MessageId = str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Author(str, Enum):
    """Who wrote a message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageState(str, Enum):
    STREAMING = "streaming"
    FINAL = "final"


@dataclass(frozen=True, slots=True)
class AcademicContext:
    """Retrieval scope of a session as resolved by the course selector.

    ``year`` keeps the display label (for example ``"Année 3"``) and
    ``year_id`` the catalog identifier it was built from. Without an
    identifier the transmitted year is derived from the label.
    """

    major: str
    year: str
    course: str
    year_id: str | None = None


@dataclass(frozen=True, slots=True)
class Citation:
    """Reference to a document page backing part of an answer."""

    title: str
    document: str
    page: int | str

    @property
    def reference(self) -> str:
        return f"{self.document} - {self.title}, page {self.page}"


@dataclass(slots=True)
class Message:
    """One turn of a conversation.

    Text and sources can only change while the message is the session's
    active streaming target.
    """

    author: Author
    text: str = ""
    sources: tuple[Citation, ...] | None = None
    id: MessageId = field(default_factory=lambda: f"msg-{uuid4().hex}")
    created_at: datetime = field(default_factory=_utcnow)
    state: MessageState = MessageState.FINAL

    @property
    def is_user(self) -> bool:
        return self.author is Author.USER

    @property
    def is_streaming(self) -> bool:
        return self.state is MessageState.STREAMING

    def append(self, fragment: str) -> None:
        if not self.is_streaming:
            raise MessageFinalizedError(f"Message {self.id} is finalized")
        self.text += fragment

    def replace_sources(self, sources: Iterable[Citation]) -> None:
        if not self.is_streaming:
            raise MessageFinalizedError(f"Message {self.id} is finalized")
        self.sources = tuple(sources)

    def freeze(self) -> None:
        self.state = MessageState.FINAL


@dataclass(slots=True)
class Session:
    """One bounded conversation scoped to a fixed academic context."""

    context: AcademicContext
    session_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    _messages: list[Message] = field(default_factory=list, repr=False)
    active_stream_id: MessageId | None = None

    @property
    def messages(self) -> Sequence[Message]:
        return tuple(self._messages)

    @property
    def is_streaming(self) -> bool:
        return self.active_stream_id is not None

    @property
    def active_message(self) -> Message | None:
        if self.active_stream_id is None:
            return None
        return self.get_message(self.active_stream_id)

    def get_message(self, message_id: MessageId) -> Message | None:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def add_user_message(self, text: str) -> Message:
        if not text.strip():
            raise EmptyQueryError("Query is empty")
        message = Message(author=Author.USER, text=text)
        self._messages.append(message)
        return message

    def add_assistant_message(self, text: str, sources: Iterable[Citation] | None = None) -> Message:
        """Append a complete assistant answer that never streams."""

        message = Message(
            author=Author.ASSISTANT,
            text=text,
            sources=tuple(sources) if sources is not None else None,
        )
        self._messages.append(message)
        return message

    def begin_stream(self) -> Message:
        """Append an empty assistant placeholder and make it the active target."""

        if self.active_stream_id is not None:
            raise ConcurrentSubmissionError(
                f"Session {self.session_id} already streams into {self.active_stream_id}"
            )
        placeholder = Message(author=Author.ASSISTANT, state=MessageState.STREAMING)
        self._messages.append(placeholder)
        self.active_stream_id = placeholder.id
        return placeholder

    def end_stream(self) -> Message | None:
        """Freeze the active target (with whatever text it holds) and release it."""

        message = self.active_message
        if message is not None:
            message.freeze()
        self.active_stream_id = None
        return message

    @property
    def last_message(self) -> Message | None:
        return self._messages[-1] if self._messages else None


__all__ = [
    "AcademicContext",
    "Author",
    "Citation",
    "Message",
    "MessageId",
    "MessageState",
    "Session",
]
