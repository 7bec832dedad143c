"""Runtime logging helpers."""

from __future__ import annotations

import sys
from logging import Handler
from typing import Literal

from loguru import logger
from rich import get_console
from rich.logging import RichHandler

from pipewright.config import Settings

LogProfile = Literal["default", "rich"]

_DEFAULT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<6} | {name}:{function}:{line} | pid={extra[pid]} | {message}"
)
_CONFIGURED_PROFILE: LogProfile | None = None


def _build_rich_handler() -> Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(settings: Settings | None = None, *, profile: LogProfile | None = None) -> None:
    """Enable pipewright's log output and install one sink for it."""
    global _CONFIGURED_PROFILE
    settings = settings or Settings()
    profile = profile or settings.log_profile
    logger.enable("pipewright")
    if profile == _CONFIGURED_PROFILE:
        return

    level = settings.log_level.upper()
    logger.remove()
    if profile == "rich":
        logger.add(
            _build_rich_handler(),
            level=level,
            format="{message}",
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.configure(extra={"pid": "-"})
        logger.add(
            sys.stderr,
            level=level,
            format=_DEFAULT_FORMAT,
            backtrace=False,
            diagnose=False,
        )
    _CONFIGURED_PROFILE = profile
