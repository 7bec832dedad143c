"""Terminal size helpers."""

from __future__ import annotations

from loguru import logger

from pipewright.environment import Environment
from pipewright.errors import PipewrightError
from pipewright.interpreters import TEXT_OR_RAISE
from pipewright.template import sh


def columns(env: Environment) -> int | None:
    """Width of the controlling terminal, or None when it cannot be determined."""
    return _tput(env, "cols")


def lines(env: Environment) -> int | None:
    """Height of the controlling terminal, or None when it cannot be determined."""
    return _tput(env, "lines")


def _tput(env: Environment, capability: str) -> int | None:
    command = sh("sh -c 'tput {} 2> /dev/tty'", capability)
    try:
        return int(command.exec(env, TEXT_OR_RAISE).strip())
    except (PipewrightError, ValueError) as exc:
        logger.debug("terminal.tput.unavailable capability={} error={}", capability, exc)
        return None
