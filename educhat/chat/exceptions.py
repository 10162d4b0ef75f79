"""Chat specific exceptions."""
from __future__ import annotations

from typing import Optional

from ..exceptions import BackendError, EduChatError


class ChatError(EduChatError):
    """Base class for chat failures."""


class EmptyQueryError(ChatError):
    """Raised when a query is empty or whitespace only."""


class ConcurrentSubmissionError(ChatError):
    """Raised when a stream is requested while another one is still active."""


class MessageFinalizedError(ChatError):
    """Raised when a finalized message is mutated."""


class ChannelError(ChatError):
    """Transport-level failure of the push channel."""

    def __init__(self, reason: str, *, status: Optional[int] = None, cause: Optional[Exception] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status = status
        self.cause = cause


class StreamCancelledError(ChatError):
    """Raised when a stream is torn down before reaching a terminal frame."""


class RequestFailedError(BackendError, ChatError):
    """Raised when the single-shot question request does not succeed."""

    def __init__(self, status: Optional[int], message: str | None = None, *, cause: Optional[Exception] = None) -> None:
        detail = message or (f"Question request failed with status {status}" if status else "Question request failed")
        super().__init__(detail, status=status, cause=cause)


__all__ = [
    "ChatError",
    "EmptyQueryError",
    "ConcurrentSubmissionError",
    "MessageFinalizedError",
    "ChannelError",
    "StreamCancelledError",
    "RequestFailedError",
]
