"""FastAPI application hosting the Gradio console."""
from __future__ import annotations

import logging

import gradio as gr
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, dependencies
from .frontend import create_frontend
from .logging import setup_logging

LOGGER = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create the host application and mount the console on it."""

    settings = dependencies.get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.frontend.title,
        description=settings.frontend.description,
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    async def health() -> dict[str, str]:
        return {"status": "ok", "backend": settings.backend.normalized_base_url}

    app.add_api_route("/health", health, include_in_schema=False)

    demo = create_frontend(settings)
    app = gr.mount_gradio_app(app, demo, path=settings.frontend.mount_path)
    LOGGER.info(
        "Console mounted | path=%s backend=%s",
        settings.frontend.mount_path,
        settings.backend.normalized_base_url,
    )
    return app


def main() -> None:
    settings = dependencies.get_settings()
    uvicorn.run(
        "educhat.main:create_app",
        factory=True,
        host=settings.frontend.host,
        port=settings.frontend.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
