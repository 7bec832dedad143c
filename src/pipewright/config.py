"""Configuration management for pipewright."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STREAM_LIMIT = 64 * 1024 * 1024


class Settings(BaseSettings):
    """Library settings.

    Settings are carried explicitly inside an ``Environment``; nothing in the
    library reads them from global state at launch time.
    """

    model_config = SettingsConfigDict(
        env_prefix="PIPEWRIGHT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Streams
    stream_limit: int | None = Field(
        default=DEFAULT_STREAM_LIMIT, ge=0, description="Default byte limit for stdout/stderr (None for unlimited)"
    )
    truncate_streams: bool = Field(
        default=False, description="Truncate streams at the limit instead of raising StreamTruncatedError"
    )
    chunk_size: int = Field(default=65536, gt=0, description="Maximum size of one byte chunk read from a stream")
    encoding: str | None = Field(default=None, description="Text encoding; defaults to the locale encoding")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "rich"] = Field(default="default", description="Log output profile")


def get_settings(**overrides: object) -> Settings:
    """Build settings from ``PIPEWRIGHT_*`` variables and the ``.env`` file.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Settings instance
    """
    return Settings(**overrides)  # type: ignore[arg-type]
