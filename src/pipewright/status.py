"""Process exit status values."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExitStatus:
    """Outcome of a finished process; either ``Ok`` or ``Fail``."""

    code: int

    @property
    def ok(self) -> bool:
        return self.code == 0

    @staticmethod
    def from_code(code: int) -> ExitStatus:
        if code == 0:
            return Ok()
        return Fail(code)

    def __str__(self) -> str:
        return f"exit status {self.code}"


@dataclass(frozen=True)
class Ok(ExitStatus):
    """Successful exit."""

    code: int = 0


@dataclass(frozen=True)
class Fail(ExitStatus):
    """Unsuccessful exit. Negative codes mean the process died from that signal."""

    code: int
