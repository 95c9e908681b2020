"""Tests for core types and the error taxonomy."""

from __future__ import annotations

import subprocess
from datetime import datetime, timedelta, timezone

from ffrun.exceptions import (
    ExitError,
    FfrunError,
    LaunchError,
    PreHookError,
    ResolutionError,
)
from ffrun.types import Invocation, RunResult, split_args


def _result(**kw) -> RunResult:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    fields = dict(
        command=["/usr/bin/ffmpeg", "-i", "test.mp4"],
        pid=100,
        returncode=0,
        started_at=start,
        ended_at=start + timedelta(seconds=2),
    )
    fields.update(kw)
    return RunResult(**fields)


# ── split_args ─────────────────────────────────────────────────


def test_split_args_two_tokens():
    assert split_args("-i test.mp4") == ["-i", "test.mp4"]


def test_split_args_no_empty_tokens():
    assert split_args("  -y\t-i  in.mp4 \n out.mp4  ") == ["-y", "-i", "in.mp4", "out.mp4"]


def test_split_args_empty():
    assert split_args("") == []
    assert split_args("   ") == []


def test_split_args_has_no_quoting():
    assert split_args('-metadata title="a b"') == ["-metadata", 'title="a', 'b"']


def test_split_args_keeps_information_separators():
    assert split_args("a\x1fb c") == ["a\x1fb", "c"]
    assert split_args("\x1c-y\x1d") == ["\x1c-y\x1d"]


def test_split_args_unicode_spaces():
    assert split_args("\u3000-i\xa0x\u2028") == ["-i", "x"]


# ── Invocation / RunResult ─────────────────────────────────────


def test_invocation_defaults_to_null_device():
    inv = Invocation(path="/usr/bin/ffmpeg", args=["-i", "x"])
    assert inv.stdin == subprocess.DEVNULL
    assert inv.stdout == subprocess.DEVNULL
    assert inv.stderr == subprocess.DEVNULL
    assert inv.env is None
    assert inv.command == ["/usr/bin/ffmpeg", "-i", "x"]


def test_run_result_duration():
    r = _result()
    assert r.duration == 2.0
    assert len(r.run_id) == 12


# ── Errors ─────────────────────────────────────────────────────


def test_errors_share_base():
    for cls in (ResolutionError, PreHookError, LaunchError, ExitError):
        assert issubclass(cls, FfrunError)


def test_resolution_error_message():
    err = ResolutionError("ffmpeg")
    assert err.name == "ffmpeg"
    assert "ffmpeg" in str(err)


def test_launch_error_keeps_os_error():
    cause = PermissionError(13, "Permission denied")
    err = LaunchError("/usr/bin/ffmpeg", cause)
    assert err.error is cause
    assert "/usr/bin/ffmpeg" in str(err)


def test_exit_error_status():
    err = ExitError(_result(returncode=1))
    assert err.returncode == 1
    assert err.signal is None
    assert err.cancelled is False
    assert str(err) == "exit status 1"


def test_exit_error_signal_and_cancelled():
    err = ExitError(_result(returncode=-9, cancelled=True))
    assert err.signal == 9
    assert err.cancelled is True
    assert str(err) == "signal: SIGKILL (cancelled)"
    assert err.result.pid == 100
