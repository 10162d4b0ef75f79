"""Chat package exports."""

from .exceptions import ChannelError, RequestFailedError, StreamCancelledError
from .fallback import FallbackRequestClient
from .models import AcademicContext, Author, Citation, Message, Session
from .references import copy_reference
from .service import ChatService
from .streaming import StreamingChatClient, StreamState

__all__ = [
    "AcademicContext",
    "Author",
    "ChannelError",
    "ChatService",
    "Citation",
    "FallbackRequestClient",
    "Message",
    "RequestFailedError",
    "Session",
    "StreamCancelledError",
    "StreamState",
    "StreamingChatClient",
    "copy_reference",
]
