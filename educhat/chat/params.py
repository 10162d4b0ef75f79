"""Translate a resolved academic context into backend query parameters."""
from __future__ import annotations

import re

from .models import AcademicContext

# A digit run starting a word; the "1" of "S1" does not.
_YEAR_NUMBER = re.compile(r"(?<!\w)\d+")


def extract_year_id(label: str) -> str:
    """Return the first digit run that starts a word in a year label, or the label itself.

    >>> extract_year_id("Année 3")
    '3'
    >>> extract_year_id("3ème année")
    '3'
    >>> extract_year_id("S1")
    'S1'
    """

    if not label:
        return label
    match = _YEAR_NUMBER.search(label)
    return match.group(0) if match else label


def to_backend_params(context: AcademicContext) -> dict[str, str]:
    """Scope parameters; the catalog year id wins over the display label when known."""

    return {
        "major": context.major,
        "year": context.year_id or extract_year_id(context.year),
        "course": context.course,
    }


def question_params(query: str, context: AcademicContext) -> dict[str, str]:
    """Full parameter set shared by the stream URL and the question body."""

    return {"query": query, **to_backend_params(context)}


__all__ = ["extract_year_id", "to_backend_params", "question_params"]
