"""Commands, pipelines and their composition."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from concurrent.futures import Future
from dataclasses import dataclass

from loguru import logger

from pipewright.environment import Environment
from pipewright.interpreters import TEXT, Interpreter
from pipewright.process import Process
from pipewright.tokenizer import tokenize

QUOTE_TRIGGERS = frozenset("\"' \t\\")


def render_argument(argument: str) -> str:
    """Quote one argument so the tokenizer reads it back unchanged."""
    if not argument:
        return "''"
    if not any(char in QUOTE_TRIGGERS for char in argument):
        return argument
    if "'" not in argument:
        return f"'{argument}'"
    if '"' not in argument and "\\" not in argument:
        return f'"{argument}"'
    escaped = argument.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class Runnable(ABC):
    """Shared behaviour of anything that can be launched as processes."""

    @property
    @abstractmethod
    def stages(self) -> tuple[Command, ...]:
        """Commands in pipeline order."""

    @abstractmethod
    def launch(self, env: Environment) -> Process:
        """Start the process(es) without waiting for them."""

    def combine(self, other: Runnable) -> Pipeline:
        """Pipe this stdout into ``other``'s stdin."""
        if not isinstance(other, Runnable):
            raise TypeError(f"cannot pipe into {type(other).__name__!r}")
        return Pipeline(self.stages + other.stages)

    def __or__(self, other: object) -> Pipeline:
        if not isinstance(other, Runnable):
            return NotImplemented
        return self.combine(other)

    def exec[T](self, env: Environment, interpreter: Interpreter[T] = TEXT) -> T:  # type: ignore[assignment]
        """Launch and block for the interpreted result."""
        return self.launch(env).await_result(interpreter)

    def fork[T](self, env: Environment, interpreter: Interpreter[T] = TEXT) -> Future[T]:  # type: ignore[assignment]
        """Launch now and interpret the result on a background thread.

        Launch errors are raised here; errors from interpretation are set on
        the returned future.
        """
        process = self.launch(env)
        future: Future[T] = Future()

        def _run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(process.await_result(interpreter))
            except Exception as exc:
                future.set_exception(exc)

        threading.Thread(target=_run, name=f"pipewright-fork-{process.pid}", daemon=True).start()
        return future


@dataclass(frozen=True)
class Command(Runnable):
    """An immutable argument vector for one process invocation."""

    arguments: tuple[str, ...]

    def __post_init__(self) -> None:
        if isinstance(self.arguments, str):
            raise TypeError("command arguments must be a sequence; use Command.of() or Command.parse() for a str")
        arguments = tuple(self.arguments)
        if not arguments:
            raise ValueError("a command needs at least one argument")
        for argument in arguments:
            if not isinstance(argument, str):
                raise TypeError(f"command arguments must be str, got {type(argument).__name__!r}")
        object.__setattr__(self, "arguments", arguments)

    @classmethod
    def of(cls, *arguments: str) -> Command:
        return cls(arguments)

    @classmethod
    def parse(cls, text: str) -> Command:
        """Tokenize plain command text with no substitutions."""
        return cls(tokenize([text]))

    @property
    def executable(self) -> str:
        return self.arguments[0]

    @property
    def stages(self) -> tuple[Command, ...]:
        return (self,)

    def launch(self, env: Environment) -> Process:
        logger.debug("command.launch argv={} cwd={}", list(self.arguments), env.working_directory)
        stage = env.host.create_process(self.arguments, str(env.working_directory), env.variables)
        return Process([stage], command=str(self), settings=env.settings)

    def __shell_arguments__(self) -> tuple[str, ...]:
        return self.arguments

    def __str__(self) -> str:
        return " ".join(render_argument(argument) for argument in self.arguments)


@dataclass(frozen=True)
class Pipeline(Runnable):
    """Commands chained stdout-to-stdin, left to right. Never nested."""

    commands: tuple[Command, ...]

    def __post_init__(self) -> None:
        commands = tuple(self.commands)
        if not commands:
            raise ValueError("a pipeline needs at least one command")
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError(f"pipeline stages must be Command, got {type(command).__name__!r}")
        object.__setattr__(self, "commands", commands)

    @property
    def stages(self) -> tuple[Command, ...]:
        return self.commands

    def launch(self, env: Environment) -> Process:
        argvs = [command.arguments for command in self.commands]
        logger.debug("pipeline.launch stages={} cwd={}", len(argvs), env.working_directory)
        stages = env.host.pipe_processes(argvs, str(env.working_directory), env.variables)
        return Process(stages, command=str(self), settings=env.settings)

    def __len__(self) -> int:
        return len(self.commands)

    def __str__(self) -> str:
        return " | ".join(str(command) for command in self.commands)


def pipe(*stages: Runnable | Iterable[Runnable]) -> Pipeline:
    """Compose commands and pipelines into one flat pipeline."""
    commands: list[Command] = []
    for stage in stages:
        if isinstance(stage, Runnable):
            commands.extend(stage.stages)
        else:
            commands.extend(pipe(*stage).commands)
    return Pipeline(tuple(commands))
