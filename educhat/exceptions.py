"""Shared exception hierarchy for the EduChat client."""
from __future__ import annotations

from typing import Optional


class EduChatError(Exception):
    """Base exception for client side failures."""


class BackendError(EduChatError):
    """Raised when the backend cannot be reached or answers unexpectedly."""

    def __init__(self, message: str, *, status: Optional[int] = None, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.status = status
        self.cause = cause


class CatalogError(BackendError):
    """Raised when a catalog listing (majors, years, courses) cannot be fetched."""


__all__ = ["EduChatError", "BackendError", "CatalogError"]
