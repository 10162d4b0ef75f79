"""Citation export tests."""
from __future__ import annotations

import logging

import pyperclip
import pytest

from educhat.chat.models import Citation
from educhat.chat.references import copy_reference


def test_reference_is_written_to_clipboard() -> None:
    copied: list[str] = []

    reference = copy_reference(Citation(title="Ch.4", document="cours.pdf", page=12), copied.append)

    assert reference == "cours.pdf - Ch.4, page 12"
    assert copied == [reference]


def test_missing_clipboard_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    def _unavailable(_text: str) -> None:
        raise pyperclip.PyperclipException("no clipboard mechanism")

    with caplog.at_level(logging.WARNING, logger="educhat.chat.references"):
        reference = copy_reference(Citation(title="Annexe", document="td.pdf", page="ii"), _unavailable)

    assert reference == "td.pdf - Annexe, page ii"
    assert "Clipboard unavailable" in caplog.text
