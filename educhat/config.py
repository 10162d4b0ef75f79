"""Application configuration objects based on Pydantic settings."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseModel):
    """Location and timeouts of the question-answering backend."""

    base_url: str = "http://localhost:8010"
    request_timeout: float = 30.0
    connect_timeout: float = 10.0
    stream_read_timeout: float | None = Field(
        default=None,
        description="Maximum silence between two stream frames; unbounded when unset.",
    )
    stream_path: str = "/chat/stream"
    question_path: str = "/chat/question"

    @property
    def normalized_base_url(self) -> str:
        return self.base_url.strip().rstrip("/")


class FrontendSettings(BaseModel):
    """Settings for the Gradio console."""

    title: str = "EduChat"
    description: str = "Assistant de cours basé sur vos supports."
    disclaimer: str = "EduChat peut faire des erreurs. Vérifiez les informations importantes."
    host: str = "127.0.0.1"
    port: int = 7860
    mount_path: str = "/"


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = True
    file_logging: bool = False
    log_dir: Path = Path("logs")


class Settings(BaseSettings):
    """Aggregate settings for the application."""

    backend: BackendSettings = Field(default_factory=BackendSettings)
    frontend: FrontendSettings = Field(default_factory=FrontendSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EDUCHAT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def load_settings() -> Settings:
    """Load application settings with caching."""

    return Settings()


__all__ = [
    "Settings",
    "BackendSettings",
    "FrontendSettings",
    "LoggingSettings",
    "load_settings",
]
