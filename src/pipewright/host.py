"""Process host: the boundary to the operating system's process API."""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from typing import IO, Protocol

from loguru import logger

from pipewright.errors import LaunchError


class ProcessLike(Protocol):
    """Subset of ``subprocess.Popen`` that a process handle relies on."""

    pid: int
    returncode: int | None
    stdin: IO[bytes] | None
    stdout: IO[bytes] | None
    stderr: IO[bytes] | None

    def poll(self) -> int | None: ...

    def wait(self, timeout: float | None = None) -> int: ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...


class ProcessHost(Protocol):
    """Contract for creating processes and native process pipelines."""

    def create_process(self, argv: Sequence[str], cwd: str, env: Mapping[str, str]) -> ProcessLike: ...

    def pipe_processes(
        self, argvs: Sequence[Sequence[str]], cwd: str, env: Mapping[str, str]
    ) -> list[ProcessLike]: ...


class SubprocessHost:
    """Process host backed by ``subprocess.Popen``.

    Pipelines are wired with OS pipes: each stage's stdout file descriptor is
    handed directly to the next stage as stdin, so no bytes are copied in
    user space. Intermediate stages inherit this process's stderr.
    """

    def create_process(self, argv: Sequence[str], cwd: str, env: Mapping[str, str]) -> ProcessLike:
        return self._spawn(argv, cwd, env, stdin=subprocess.PIPE, stderr=subprocess.PIPE)

    def pipe_processes(
        self, argvs: Sequence[Sequence[str]], cwd: str, env: Mapping[str, str]
    ) -> list[ProcessLike]:
        stages: list[ProcessLike] = []
        try:
            for index, argv in enumerate(argvs):
                last = index == len(argvs) - 1
                upstream = stages[-1].stdout if stages else subprocess.PIPE
                stage = self._spawn(argv, cwd, env, stdin=upstream, stderr=subprocess.PIPE if last else None)
                if stages and stages[-1].stdout is not None:
                    # Only the next stage may hold the read end, so SIGPIPE reaches the writer.
                    stages[-1].stdout.close()
                    stages[-1].stdout = None
                stages.append(stage)
        except LaunchError:
            for stage in stages:
                if stage.poll() is None:
                    stage.kill()
                stage.wait()
                for stream in (stage.stdin, stage.stdout, stage.stderr):
                    if stream is not None:
                        stream.close()
            raise
        return stages

    @staticmethod
    def _spawn(
        argv: Sequence[str],
        cwd: str,
        env: Mapping[str, str],
        *,
        stdin: int | IO[bytes] | None,
        stderr: int | None,
    ) -> ProcessLike:
        try:
            return subprocess.Popen(  # noqa: S603
                list(argv),
                cwd=cwd,
                env=dict(env),
                stdin=stdin,
                stdout=subprocess.PIPE,
                stderr=stderr,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("host.spawn.error argv={} error={}", list(argv), exc)
            raise LaunchError(argv, str(exc)) from exc
