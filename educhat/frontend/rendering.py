"""Pure formatting of messages and history for the console."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from ..chat.models import Citation, Message, Session
from ..history import ChatHistory, format_timestamp

SOURCES_HEADING = "**Sources consultées**"
TYPING_LABEL = "_Recherche dans les supports de cours..._"


def render_sources(sources: Iterable[Citation]) -> str:
    lines = [f"- {source.title} • {source.document} • Page {source.page}" for source in sources]
    if not lines:
        return ""
    return "\n".join([SOURCES_HEADING, *lines])


def render_message(message: Message) -> str:
    """Markdown for one message, with its citations appended when present."""

    text = str(message.text or "")
    if message.is_user or not message.sources:
        return text
    return f"{text}\n\n{render_sources(message.sources)}"


def to_chatbot_messages(session: Session | None) -> list[dict[str, Any]]:
    """Convert a session into Gradio ``messages`` entries."""

    if session is None:
        return []
    entries: list[dict[str, Any]] = []
    for message in session.messages:
        content = render_message(message)
        if not message.is_user and message.is_streaming and not content:
            content = TYPING_LABEL
        entries.append({"role": message.author.value, "content": content})
    return entries


def render_history(history: ChatHistory, current_id: str | None = None, now: datetime | None = None) -> str:
    if not len(history):
        return "_Aucune conversation_"
    blocks: list[str] = []
    for group, sessions in history.group_sessions(now).items():
        lines = [f"**{group}**"]
        for entry in sessions:
            marker = "▸ " if entry.id == current_id else ""
            lines.append(
                f"- {marker}{entry.course_name} · {entry.last_message} ({format_timestamp(entry.timestamp, now)})"
            )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


__all__ = [
    "SOURCES_HEADING",
    "render_history",
    "render_message",
    "render_sources",
    "to_chatbot_messages",
]
