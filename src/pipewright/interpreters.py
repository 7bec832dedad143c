"""Result interpreters: turn a running process into a typed result."""

from __future__ import annotations

import codecs
import locale
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from pipewright.errors import NonZeroExitError
from pipewright.status import ExitStatus, Fail

if TYPE_CHECKING:
    from pipewright.process import Process


class Interpreter[T](ABC):
    """Contract for producing a ``T`` from a process handle."""

    @abstractmethod
    def interpret(self, process: Process) -> T:
        """Consume whatever the result needs from ``process``."""

    def map[U](self, function: Callable[[T], U]) -> Interpreter[U]:
        """Derive an interpreter that feeds this one's result through ``function``."""
        return _Mapped(self, function)


class FunctionInterpreter[T](Interpreter[T]):
    """Interpreter backed by a plain function of the process handle."""

    def __init__(self, function: Callable[[Process], T], name: str | None = None) -> None:
        self._function = function
        self.name = name or getattr(function, "__name__", "interpreter")

    def interpret(self, process: Process) -> T:
        return self._function(process)

    def __repr__(self) -> str:
        return f"Interpreter({self.name})"


class _Mapped[T, U](Interpreter[U]):
    def __init__(self, inner: Interpreter[T], function: Callable[[T], U]) -> None:
        self._inner = inner
        self._function = function

    def interpret(self, process: Process) -> U:
        return self._function(self._inner.interpret(process))

    def __repr__(self) -> str:
        return f"{self._inner!r}.map({getattr(self._function, '__name__', 'function')})"


class _Checked[T](Interpreter[T]):
    def __init__(self, inner: Interpreter[T]) -> None:
        self._inner = inner

    def interpret(self, process: Process) -> T:
        result = self._inner.interpret(process)
        status = process.exit_status()
        if isinstance(status, Fail):
            raise NonZeroExitError(process.command, status)
        return result

    def __repr__(self) -> str:
        return f"checked({self._inner!r})"


def checked[T](interpreter: Interpreter[T]) -> Interpreter[T]:
    """Wrap ``interpreter`` so that an unsuccessful exit raises ``NonZeroExitError``.

    The exit status is awaited after ``interpreter`` returns, so wrap eager
    interpreters (``TEXT``, ``LINE_LIST``); a lazy stream would be left unread.
    """
    return _Checked(interpreter)


def text_encoding(process: Process) -> str:
    return process.settings.encoding or locale.getpreferredencoding(False)


def split_lines(chunks: Iterable[bytes], encoding: str) -> Iterator[str]:
    """Decode byte chunks into lines without their line terminators."""
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    pending = ""
    for chunk in chunks:
        pending += decoder.decode(chunk)
        *complete, pending = pending.split("\n")
        for line in complete:
            yield line.removesuffix("\r")
    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending.removesuffix("\r")


def _text(process: Process) -> str:
    data = b"".join(process.stdout())
    process.exit_status()
    return data.decode(text_encoding(process), errors="replace").rstrip("\n")


def _lines(process: Process) -> Iterator[str]:
    return split_lines(process.stdout(), text_encoding(process))


def _bytes(process: Process) -> Iterator[bytes]:
    return process.stdout()


def _exit_status(process: Process) -> ExitStatus:
    return process.exit_status()


def _discard(_status: ExitStatus) -> None:
    return None


TEXT: Interpreter[str] = FunctionInterpreter(_text, "text")
LINES: Interpreter[Iterator[str]] = FunctionInterpreter(_lines, "lines")
LINE_LIST: Interpreter[list[str]] = LINES.map(list)
BYTES: Interpreter[Iterator[bytes]] = FunctionInterpreter(_bytes, "bytes")
EXIT_STATUS: Interpreter[ExitStatus] = FunctionInterpreter(_exit_status, "exit_status")
UNIT: Interpreter[None] = EXIT_STATUS.map(_discard)
PATH: Interpreter[Path] = TEXT.map(Path)
TEXT_OR_RAISE: Interpreter[str] = checked(TEXT)
