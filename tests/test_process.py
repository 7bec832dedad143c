from __future__ import annotations

from collections.abc import Iterator

import pytest

from pipewright import (
    EXIT_STATUS,
    TEXT,
    Fail,
    Ok,
    Settings,
    StreamError,
    StreamTruncatedError,
)


def test_handle_observes_last_stage(make_process) -> None:
    process, stages = make_process((b"first", 1), (b"last", 0))
    assert process.pid == stages[-1].pid
    assert process.pids == (stages[0].pid, stages[1].pid)
    assert b"".join(process.stdout()) == b"last"
    assert process.exit_status() == Ok()
    assert all(stage.returncode is not None for stage in stages)


def test_exit_status_values(make_process) -> None:
    ok, _ = make_process((b"", 0))
    failed, _ = make_process((b"", 3))
    assert ok.exit_status() == Ok()
    assert ok.exit_status().ok
    status = failed.exit_status()
    assert status == Fail(3)
    assert not status.ok
    assert str(status) == "exit status 3"


def test_streams_can_only_be_consumed_once(make_process) -> None:
    process, _ = make_process((b"data", 0))
    assert list(process.stdout()) == [b"data"]
    with pytest.raises(StreamError, match="already been consumed"):
        process.stdout()


def test_stream_is_claimed_before_iteration(make_process) -> None:
    process, _ = make_process((b"data", 0))
    pending = process.stdout()
    with pytest.raises(StreamError):
        process.stdout()
    assert b"".join(pending) == b"data"


def test_stdout_and_stderr_are_independent(make_process) -> None:
    process, _ = make_process((b"out", 0), stderr=b"err")
    assert b"".join(process.stderr()) == b"err"
    assert b"".join(process.stdout()) == b"out"


def test_uncaptured_stream_raises(make_process) -> None:
    process, _ = make_process((b"out", 0), stderr=None)
    with pytest.raises(StreamError, match="not captured"):
        process.stderr()


def test_stream_limit_raises_by_default(make_process) -> None:
    settings = Settings(_env_file=None, chunk_size=4)
    process, _ = make_process((b"abcdefghij", 0), settings=settings)
    chunks = process.stdout(limit=6)
    assert next(chunks) == b"abcd"
    with pytest.raises(StreamTruncatedError) as exc_info:
        next(chunks)
    assert exc_info.value.limit == 6
    assert exc_info.value.stream == "stdout"


def test_stream_limit_truncates_when_configured(make_process) -> None:
    settings = Settings(_env_file=None, chunk_size=4, truncate_streams=True)
    process, _ = make_process((b"abcdefghij", 0), settings=settings)
    assert list(process.stdout(limit=6)) == [b"abcd", b"ef"]


def test_stream_exactly_at_limit_is_complete(make_process) -> None:
    settings = Settings(_env_file=None, chunk_size=4)
    process, _ = make_process((b"abcdefgh", 0), settings=settings)
    assert b"".join(process.stdout(limit=8)) == b"abcdefgh"


def test_default_limit_comes_from_settings(make_process) -> None:
    settings = Settings(_env_file=None, stream_limit=3)
    process, _ = make_process((b"abcdef", 0), settings=settings)
    with pytest.raises(StreamTruncatedError):
        list(process.stdout())



def test_unclaimed_stdout_stays_readable_after_exit_status(make_process) -> None:
    process, _ = make_process((b"kept", 0), stderr=b"also kept")
    assert process.exit_status() == Ok()
    assert b"".join(process.stdout()) == b"kept"
    assert b"".join(process.stderr()) == b"also kept"


def test_stderr_is_drained_while_awaiting(make_process) -> None:
    process, _ = make_process((b"out\n", 0), stderr=b"warning\n")
    assert process.await_result(TEXT) == "out"
    assert b"".join(process.stderr()) == b"warning\n"


def test_drained_stream_past_limit_raises(make_process) -> None:
    process, _ = make_process((b"abcdef", 0), settings=Settings(_env_file=None, stream_limit=3))
    assert process.exit_status() == Ok()
    with pytest.raises(StreamTruncatedError) as exc_info:
        b"".join(process.stdout())
    assert exc_info.value.limit == 3


def test_drained_stream_past_limit_truncates_when_configured(make_process) -> None:
    settings = Settings(_env_file=None, stream_limit=3, truncate_streams=True)
    process, _ = make_process((b"abcdef", 0), settings=settings)
    assert process.exit_status() == Ok()
    assert b"".join(process.stdout()) == b"abc"


def test_abort_and_kill_reach_every_stage(make_process) -> None:
    process, stages = make_process((b"", 0), (b"", 0), (b"", 0))
    process.abort()
    assert [stage.signals for stage in stages] == [["terminate"]] * 3
    assert process.exit_status() == Fail(-15)

    process, stages = make_process((b"", 0), (b"", 0), (b"", 0))
    process.kill()
    assert [stage.signals for stage in stages] == [["kill"]] * 3
    assert not process.running()


def test_signals_skip_exited_stages(make_process) -> None:
    process, stages = make_process((b"", 0), (b"", 0))
    stages[0].wait()
    process.kill()
    assert stages[0].signals == []
    assert stages[1].signals == ["kill"]


def test_supply_stdin_writes_to_first_stage(make_process) -> None:
    process, stages = make_process((b"", 0), (b"", 0))
    process.supply_stdin([b"one\n", b"two\n"])
    assert process.exit_status() == Ok()
    assert stages[0].stdin.written == b"one\ntwo\n"
    assert stages[0].stdin.closed


def test_supply_stdin_twice_is_rejected(make_process) -> None:
    process, _ = make_process((b"", 0))
    process.supply_stdin([b"x"])
    with pytest.raises(StreamError, match="already been supplied"):
        process.supply_stdin([b"y"])
    process.exit_status()


def test_stdin_writer_failure_surfaces_on_exit_status(make_process) -> None:
    def _chunks() -> Iterator[bytes]:
        yield b"partial"
        raise RuntimeError("producer broke")

    process, _ = make_process((b"", 0))
    process.supply_stdin(_chunks())
    with pytest.raises(StreamError) as exc_info:
        process.exit_status()
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_await_closes_unused_stdin(make_process) -> None:
    process, stages = make_process((b"", 0))
    assert process.await_result(EXIT_STATUS) == Ok()
    assert stages[0].stdin.closed
    with pytest.raises(StreamError, match="not open"):
        process.supply_stdin([b"late"])


def test_context_manager_releases_everything(make_process) -> None:
    with make_process((b"out", 0), (b"out", 0))[0] as process:
        stages = process.stages
    assert all(stage.returncode is not None for stage in stages)
    assert all(stage.stdout.closed and stage.stdin.closed for stage in stages)


@pytest.mark.asyncio
async def test_await_async(make_process) -> None:
    process, _ = make_process((b"async\n", 0))
    assert await process.await_async(TEXT) == "async"
