"""Execution environment supplied to every launch."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType

from pipewright.config import Settings
from pipewright.host import ProcessHost, SubprocessHost


@dataclass(frozen=True)
class Environment:
    """Working directory, variables, settings and process host for a launch.

    There is no implicit default environment. Callers either build one with
    ``Environment.isolated`` or opt in to the current process's own variables
    and directory with ``Environment.inherit``.
    """

    variables: Mapping[str, str]
    working_directory: Path
    settings: Settings = field(default_factory=Settings)
    host: ProcessHost = field(default_factory=SubprocessHost)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        object.__setattr__(self, "working_directory", Path(self.working_directory))

    @classmethod
    def inherit(cls, *, settings: Settings | None = None, host: ProcessHost | None = None) -> Environment:
        """Snapshot the calling process's environment variables and working directory."""
        return cls(
            variables=dict(os.environ),
            working_directory=Path.cwd(),
            settings=settings or Settings(),
            host=host or SubprocessHost(),
        )

    @classmethod
    def isolated(
        cls,
        working_directory: str | os.PathLike[str],
        variables: Mapping[str, str] | None = None,
        *,
        settings: Settings | None = None,
        host: ProcessHost | None = None,
    ) -> Environment:
        """Build an environment that shares nothing with the calling process."""
        return cls(
            variables=dict(variables or {}),
            working_directory=Path(working_directory),
            settings=settings or Settings(),
            host=host or SubprocessHost(),
        )

    def with_variables(self, **variables: str) -> Environment:
        merged = {**self.variables, **variables}
        return replace(self, variables=merged)

    def without_variables(self, *names: str) -> Environment:
        return replace(self, variables={k: v for k, v in self.variables.items() if k not in names})

    def with_working_directory(self, working_directory: str | os.PathLike[str]) -> Environment:
        return replace(self, working_directory=Path(working_directory))

    def with_settings(self, settings: Settings) -> Environment:
        return replace(self, settings=settings)
