"""Handle over a running process or process pipeline."""

from __future__ import annotations

import asyncio
import contextlib
import threading
from collections.abc import Iterable, Iterator, Sequence
from types import TracebackType
from typing import IO

from loguru import logger

from pipewright.config import Settings
from pipewright.errors import StreamError, StreamTruncatedError
from pipewright.host import ProcessLike
from pipewright.interpreters import TEXT, Interpreter
from pipewright.status import ExitStatus, Fail, Ok

__all__ = ["ExitStatus", "Fail", "Ok", "Process"]


class Process:
    """A launched command or pipeline.

    The handle observes the last stage: ``pid``, ``stdout``, ``stderr`` and
    ``exit_status`` all refer to it, while ``abort`` and ``kill`` reach every
    stage. Standard input is written to the first stage.

    Stream limits: when a stream yields more bytes than its limit the reader
    raises ``StreamTruncatedError``, unless ``Settings.truncate_streams`` is
    set, in which case the stream ends silently at the limit.

    Captured streams that nobody claims are drained on background threads
    (stderr from ``await_result``, both from ``exit_status``) and stay
    readable afterwards.
    """

    def __init__(self, stages: Sequence[ProcessLike], *, command: str, settings: Settings) -> None:
        if not stages:
            raise ValueError("a process handle needs at least one stage")
        self._stages = tuple(stages)
        self.command = command
        self.settings = settings
        self._lock = threading.Lock()
        self._consumed: set[str] = set()
        self._drains: dict[str, _Drain] = {}
        self._writer: threading.Thread | None = None
        self._writer_error: Exception | None = None
        self._log = logger.bind(pid=self.pid, command=command)

    @property
    def pid(self) -> int:
        return self._stages[-1].pid

    @property
    def pids(self) -> tuple[int, ...]:
        return tuple(stage.pid for stage in self._stages)

    @property
    def stages(self) -> tuple[ProcessLike, ...]:
        return self._stages

    def stdout(self, limit: int | None = None) -> Iterator[bytes]:
        """Lazily read the last stage's stdout as byte chunks.

        Args:
            limit: Byte limit; ``None`` uses ``Settings.stream_limit``

        The stream can be consumed once.
        """
        return self._open("stdout", self._stages[-1].stdout, limit)

    def stderr(self, limit: int | None = None) -> Iterator[bytes]:
        """Lazily read the last stage's stderr as byte chunks."""
        return self._open("stderr", self._stages[-1].stderr, limit)

    def supply_stdin(self, chunks: Iterable[bytes]) -> None:
        """Write ``chunks`` to the first stage's stdin on a background thread.

        The stream is closed once ``chunks`` is exhausted. A write failure is
        raised from the next ``exit_status`` or ``await_result`` call.
        """
        stream = self._stages[0].stdin
        with self._lock:
            if self._writer is not None:
                raise StreamError("stdin has already been supplied")
            if stream is None or stream.closed:
                raise StreamError("stdin is not open")
            self._writer = threading.Thread(
                target=self._write_stdin,
                args=(stream, chunks),
                name=f"pipewright-stdin-{self.pid}",
                daemon=True,
            )
        self._writer.start()

    def close_stdin(self) -> None:
        """Signal end of input to the first stage."""
        stream = self._stages[0].stdin
        if self._writer is None and stream is not None and not stream.closed:
            with contextlib.suppress(BrokenPipeError):
                stream.close()

    def exit_status(self) -> ExitStatus:
        """Wait for every stage to exit and return the last stage's status.

        Captured streams nobody has claimed are drained in the background
        first, so a chatty process cannot block on a full pipe. What was
        drained, up to ``Settings.stream_limit``, stays readable through
        ``stdout()`` and ``stderr()``.
        """
        self.close_stdin()
        self._drain_unclaimed("stdout", "stderr")
        codes = [stage.wait() for stage in self._stages]
        self._join_drains()
        self._join_writer()
        status = ExitStatus.from_code(codes[-1])
        self._log.debug("process.exit status={}", status)
        return status

    def await_result[T](self, interpreter: Interpreter[T] = TEXT) -> T:  # type: ignore[assignment]
        """Block until ``interpreter`` has produced its result."""
        self.close_stdin()
        self._drain_unclaimed("stderr")
        self._log.debug("process.await interpreter={}", interpreter)
        return interpreter.interpret(self)

    async def await_async[T](self, interpreter: Interpreter[T] = TEXT) -> T:  # type: ignore[assignment]
        """Coroutine form of ``await_result`` for asyncio callers."""
        return await asyncio.to_thread(self.await_result, interpreter)

    def abort(self) -> None:
        """Ask every stage to terminate. Does not wait."""
        self._log.info("process.abort pids={}", self.pids)
        for stage in self._stages:
            if stage.poll() is None:
                stage.terminate()

    def kill(self) -> None:
        """Forcibly kill every stage. Does not wait."""
        self._log.info("process.kill pids={}", self.pids)
        for stage in self._stages:
            if stage.poll() is None:
                stage.kill()

    def running(self) -> bool:
        return any(stage.poll() is None for stage in self._stages)

    def close(self) -> None:
        """Kill any stage still running, reap every stage and close its streams."""
        if self.running():
            self.kill()
        for stage in self._stages:
            stage.wait()
        self._join_drains()
        for stage in self._stages:
            for stream in (stage.stdin, stage.stdout, stage.stderr):
                if stream is not None and not stream.closed:
                    with contextlib.suppress(BrokenPipeError):
                        stream.close()
        if self._writer is not None:
            self._writer.join()

    def __enter__(self) -> Process:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Process(pid={self.pid}, command={self.command!r})"

    def _open(self, name: str, stream: IO[bytes] | None, limit: int | None) -> Iterator[bytes]:
        with self._lock:
            if name in self._consumed:
                raise StreamError(f"{name} has already been consumed")
            drain = self._drains.get(name)
            if stream is None and drain is None:
                raise StreamError(f"{name} is not captured")
            self._consumed.add(name)
        if limit is None:
            limit = self.settings.stream_limit
        if drain is not None:
            return self._limited(name, self._replay(name, drain), limit)
        assert stream is not None
        return self._limited(name, self._raw_chunks(name, stream), limit)

    def _drain_unclaimed(self, *names: str) -> None:
        """Start background readers for captured streams nobody has claimed."""
        tail = self._stages[-1]
        with self._lock:
            for name in names:
                stream = tail.stdout if name == "stdout" else tail.stderr
                if name in self._consumed or name in self._drains or stream is None or stream.closed:
                    continue
                self._drains[name] = _Drain(name, stream, self.settings, pid=self.pid)

    def _join_drains(self) -> None:
        for drain in list(self._drains.values()):
            drain.join()

    def _raw_chunks(self, name: str, stream: IO[bytes]) -> Iterator[bytes]:
        chunk_size = self.settings.chunk_size
        try:
            while True:
                try:
                    chunk = stream.read1(chunk_size)  # type: ignore[attr-defined]
                except OSError as exc:
                    raise StreamError(f"Failed to read {name}: {exc}") from exc
                if not chunk:
                    return
                yield chunk
        finally:
            stream.close()

    def _replay(self, name: str, drain: _Drain) -> Iterator[bytes]:
        drain.join()
        if drain.error is not None:
            raise StreamError(f"Failed to read {name}: {drain.error}") from drain.error
        yield from drain.chunks
        if drain.overflow and not self.settings.truncate_streams:
            raise StreamTruncatedError(name, drain.limit or 0)

    def _limited(self, name: str, source: Iterator[bytes], limit: int | None) -> Iterator[bytes]:
        total = 0
        with contextlib.closing(source):  # type: ignore[type-var]
            for chunk in source:
                if limit is not None and total + len(chunk) > limit:
                    if not self.settings.truncate_streams:
                        raise StreamTruncatedError(name, limit)
                    self._log.debug("process.stream.truncated stream={} limit={}", name, limit)
                    if total < limit:
                        yield chunk[: limit - total]
                    return
                total += len(chunk)
                yield chunk

    def _write_stdin(self, stream: IO[bytes], chunks: Iterable[bytes]) -> None:
        try:
            for chunk in chunks:
                stream.write(chunk)
            stream.close()
        except BrokenPipeError:
            self._log.debug("process.stdin.closed_by_reader")
        except Exception as exc:
            self._writer_error = exc
        finally:
            if not stream.closed:
                with contextlib.suppress(BrokenPipeError):
                    stream.close()

    def _join_writer(self) -> None:
        if self._writer is None:
            return
        self._writer.join()
        error, self._writer_error = self._writer_error, None
        if error is not None:
            raise StreamError(f"Failed to write stdin: {error}") from error


class _Drain:
    """Background reader that keeps up to ``Settings.stream_limit`` bytes of one stream.

    Bytes past the limit are read and dropped so the writer never blocks on a
    full pipe.
    """

    def __init__(self, name: str, stream: IO[bytes], settings: Settings, *, pid: int) -> None:
        self.limit = settings.stream_limit
        self.chunks: list[bytes] = []
        self.overflow = False
        self.error: OSError | None = None
        self._thread = threading.Thread(
            target=self._run,
            args=(stream, settings.chunk_size),
            name=f"pipewright-{name}-{pid}",
            daemon=True,
        )
        self._thread.start()

    def join(self) -> None:
        self._thread.join()

    def _run(self, stream: IO[bytes], chunk_size: int) -> None:
        kept = 0
        try:
            while chunk := stream.read1(chunk_size):  # type: ignore[attr-defined]
                if self.limit is not None and kept + len(chunk) > self.limit:
                    self.overflow = True
                    chunk = chunk[: max(self.limit - kept, 0)]
                if chunk:
                    self.chunks.append(chunk)
                    kept += len(chunk)
        except OSError as exc:
            self.error = exc
        finally:
            stream.close()
