from __future__ import annotations

import io
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from pipewright import Environment, LaunchError, Settings


class _RecordingStream(io.BytesIO):
    """BytesIO that remembers what was written before it was closed."""

    def __init__(self) -> None:
        super().__init__()
        self.written = b""

    def close(self) -> None:
        if not self.closed:
            self.written = self.getvalue()
        super().close()


class _FakeProcess:
    def __init__(self, pid: int, stdout: bytes = b"", stderr: bytes | None = b"", exit_code: int = 0) -> None:
        self.pid = pid
        self.stdin: _RecordingStream | None = _RecordingStream()
        self.stdout: io.BytesIO | None = io.BytesIO(stdout)
        self.stderr: io.BytesIO | None = io.BytesIO(stderr) if stderr is not None else None
        self.returncode: int | None = None
        self.signals: list[str] = []
        self._exit_code = exit_code

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int:
        _ = timeout
        if self.returncode is None:
            self.returncode = self._exit_code
        return self.returncode

    def terminate(self) -> None:
        self.signals.append("terminate")
        self.returncode = -15

    def kill(self) -> None:
        self.signals.append("kill")
        self.returncode = -9


class _FakeHost:
    """Process host that fabricates processes from canned outputs."""

    def __init__(self) -> None:
        self.outputs: dict[tuple[str, ...], tuple[bytes, bytes, int]] = {}
        self.missing: set[str] = set()
        self.calls: list[tuple[str, tuple[tuple[str, ...], ...], str, dict[str, str]]] = []
        self.processes: list[_FakeProcess] = []
        self._next_pid = 1000

    def create_process(self, argv: Sequence[str], cwd: str, env: Mapping[str, str]) -> _FakeProcess:
        self.calls.append(("create", (tuple(argv),), cwd, dict(env)))
        return self._spawn(argv)

    def pipe_processes(self, argvs: Sequence[Sequence[str]], cwd: str, env: Mapping[str, str]) -> list[_FakeProcess]:
        self.calls.append(("pipe", tuple(tuple(argv) for argv in argvs), cwd, dict(env)))
        return [self._spawn(argv) for argv in argvs]

    def _spawn(self, argv: Sequence[str]) -> _FakeProcess:
        if argv[0] in self.missing:
            raise LaunchError(argv, "No such file or directory")
        stdout, stderr, exit_code = self.outputs.get(tuple(argv), (b"", b"", 0))
        self._next_pid += 1
        process = _FakeProcess(self._next_pid, stdout, stderr, exit_code)
        self.processes.append(process)
        return process


@pytest.fixture
def fake_host() -> _FakeHost:
    return _FakeHost()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def fake_env(tmp_path: Path, fake_host: _FakeHost, settings: Settings) -> Environment:
    return Environment.isolated(tmp_path, {"LANG": "C.UTF-8"}, settings=settings, host=fake_host)


@pytest.fixture
def make_process():
    """Build a Process over fake stages without going through a host."""
    from pipewright import Process

    def _make(
        *outputs: tuple[bytes, int],
        settings: Settings | None = None,
        stderr: bytes | None = b"",
    ) -> tuple[Process, list[_FakeProcess]]:
        stages = [
            _FakeProcess(2000 + index, stdout, stderr, exit_code) for index, (stdout, exit_code) in enumerate(outputs)
        ]
        process = Process(stages, command="fake", settings=settings or Settings(_env_file=None))
        return process, stages

    return _make


@pytest.fixture
def host_factory() -> type[_FakeHost]:
    return _FakeHost
