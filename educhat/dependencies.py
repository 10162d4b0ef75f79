"""Common dependency helpers."""
from __future__ import annotations

from functools import lru_cache

import httpx

from .catalog.client import CatalogClient
from .chat.models import AcademicContext
from .chat.service import ChatService
from .chat.streaming import MessageListener
from .config import Settings, load_settings


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return load_settings()


def create_http_client(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the async client shared by the catalog and chat clients."""

    settings = settings or get_settings()
    backend = settings.backend
    return httpx.AsyncClient(
        base_url=backend.normalized_base_url,
        timeout=httpx.Timeout(backend.request_timeout, connect=backend.connect_timeout),
        transport=transport,
    )


def build_catalog_client(client: httpx.AsyncClient) -> CatalogClient:
    return CatalogClient(client)


def build_chat_service(
    context: AcademicContext,
    client: httpx.AsyncClient,
    settings: Settings | None = None,
    *,
    on_update: MessageListener | None = None,
) -> ChatService:
    settings = settings or get_settings()
    return ChatService.for_context(context, client, settings.backend, on_update=on_update)


__all__ = ["get_settings", "create_http_client", "build_catalog_client", "build_chat_service"]
