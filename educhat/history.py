"""In-memory list of chat sessions shown in the sidebar."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .chat.models import Session

NEW_CONVERSATION_LABEL = "Nouvelle conversation"

GROUP_TODAY = "Aujourd'hui"
GROUP_YESTERDAY = "Hier"
GROUP_LAST_WEEK = "7 derniers jours"
GROUP_OLDER = "Plus ancien"
GROUP_ORDER = (GROUP_TODAY, GROUP_YESTERDAY, GROUP_LAST_WEEK, GROUP_OLDER)

_FRENCH_SHORT_MONTHS = (
    "janv.",
    "févr.",
    "mars",
    "avr.",
    "mai",
    "juin",
    "juil.",
    "août",
    "sept.",
    "oct.",
    "nov.",
    "déc.",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class SessionSummary:
    id: str
    course_name: str
    course_field: str
    last_message: str = NEW_CONVERSATION_LABEL
    timestamp: datetime = field(default_factory=_utcnow)
    message_count: int = 0


def format_timestamp(timestamp: datetime, now: datetime | None = None) -> str:
    """Short relative label for a session, in French."""

    now = now or _utcnow()
    hours = int((now - timestamp) // timedelta(hours=1))
    days = hours // 24
    if hours < 1:
        return "Maintenant"
    if hours < 24:
        return f"{hours}h"
    if days == 1:
        return "Hier"
    if days < 7:
        return f"{days}j"
    return f"{timestamp.day} {_FRENCH_SHORT_MONTHS[timestamp.month - 1]}"


def _group_for(timestamp: datetime, now: datetime) -> str:
    days = (now - timestamp) // timedelta(days=1)
    if days <= 0:
        return GROUP_TODAY
    if days == 1:
        return GROUP_YESTERDAY
    if days < 7:
        return GROUP_LAST_WEEK
    return GROUP_OLDER


class ChatHistory:
    """Newest-first list of session summaries; nothing is synchronized."""

    def __init__(self, entries: list[SessionSummary] | None = None) -> None:
        self._entries: list[SessionSummary] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[SessionSummary]:
        return list(self._entries)

    def get(self, session_id: str) -> SessionSummary | None:
        return next((entry for entry in self._entries if entry.id == session_id), None)

    def record(self, session: Session) -> SessionSummary:
        """Add ``session`` on top of the list, or refresh its existing summary."""

        summary = self.get(session.session_id)
        if summary is None:
            summary = SessionSummary(
                id=session.session_id,
                course_name=session.context.course,
                course_field=session.context.major,
                timestamp=session.created_at,
            )
            self._entries.insert(0, summary)

        last = session.last_message
        if last is not None and last.text:
            summary.last_message = last.text
            summary.timestamp = last.created_at
        summary.message_count = len(session.messages)
        return summary

    def group_sessions(self, now: datetime | None = None) -> dict[str, list[SessionSummary]]:
        now = now or _utcnow()
        groups: dict[str, list[SessionSummary]] = {}
        for entry in self._entries:
            groups.setdefault(_group_for(entry.timestamp, now), []).append(entry)
        return {name: groups[name] for name in GROUP_ORDER if name in groups}


__all__ = [
    "ChatHistory",
    "SessionSummary",
    "format_timestamp",
    "GROUP_ORDER",
    "NEW_CONVERSATION_LABEL",
]
