"""Citation reference export."""
from __future__ import annotations

import logging
from collections.abc import Callable

import pyperclip

from .models import Citation

LOGGER = logging.getLogger(__name__)

ClipboardWriter = Callable[[str], None]


def format_reference(citation: Citation) -> str:
    return citation.reference


def copy_reference(citation: Citation, clipboard: ClipboardWriter | None = None) -> str:
    """Place the citation's reference string on the clipboard and return it.

    Clipboard failures are logged and otherwise ignored.
    """

    reference = format_reference(citation)
    writer = clipboard or pyperclip.copy
    try:
        writer(reference)
    except pyperclip.PyperclipException as exc:
        LOGGER.warning("Clipboard unavailable | reference=%s error=%s", reference, exc)
    return reference


__all__ = ["ClipboardWriter", "copy_reference", "format_reference"]
