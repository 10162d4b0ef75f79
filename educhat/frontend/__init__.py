"""Frontend package exports."""
from __future__ import annotations

from typing import Any

__all__ = ["create_frontend"]


def __getattr__(name: str) -> Any:
    if name == "create_frontend":
        from .gradio_app import create_frontend as _create_frontend

        return _create_frontend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
