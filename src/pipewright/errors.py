"""Exception types for pipewright."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipewright.process import ExitStatus


class PipewrightError(Exception):
    """Base exception for pipewright."""


class ParseError(PipewrightError):
    """Raised when a command template cannot be tokenized."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CoercionError(PipewrightError, TypeError):
    """Raised when a substituted value has no argument coercion."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Cannot use value of type {type(value).__name__!r} as a command argument")
        self.value = value


class LaunchError(PipewrightError):
    """Raised when the operating system refuses to start a process."""

    def __init__(self, argv: Sequence[str], reason: str) -> None:
        super().__init__(f"Failed to launch {list(argv)!r}: {reason}")
        self.argv = tuple(argv)


class StreamError(PipewrightError):
    """Raised when a process stream cannot be consumed."""


class StreamTruncatedError(StreamError):
    """Raised when a stream produces more bytes than its limit."""

    def __init__(self, stream: str, limit: int) -> None:
        super().__init__(f"{stream} exceeded the limit of {limit} bytes")
        self.stream = stream
        self.limit = limit


class NonZeroExitError(PipewrightError):
    """Raised by checked interpreters when a process exits unsuccessfully."""

    def __init__(self, command: str, status: ExitStatus) -> None:
        super().__init__(f"Command {command!r} failed with {status}")
        self.command = command
        self.status = status
