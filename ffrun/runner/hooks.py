"""Ready-made hooks for HookedRunner.

On-cancel hooks receive the running ``asyncio.subprocess.Process``;
pre-start hooks receive the unstarted Invocation and may change it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
import signal
from pathlib import Path
from typing import Any, Callable

from ffrun.types import Invocation, PreHook, ProcessHook

_logger = logging.getLogger(__name__)


async def call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async hook."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


# ── On-cancel hooks ───────────────────────────────────────────────────────────


def kill_process(proc: asyncio.subprocess.Process) -> None:
    """Kill (-9) the process. A process that already exited is left alone."""
    try:
        proc.kill()
    except ProcessLookupError:
        pass


def signal_process(sig: int) -> ProcessHook:
    """Send ``sig`` instead of killing, e.g. ``signal.SIGTERM`` (kill -15)."""

    def _send(proc: asyncio.subprocess.Process) -> None:
        try:
            proc.send_signal(sig)
        except ProcessLookupError:
            pass

    return _send


# FFmpeg finishes writing its output and exits when interrupted
interrupt_process = signal_process(signal.SIGINT)


# ── Post-start hooks ──────────────────────────────────────────────────────────


def log_pid(proc: asyncio.subprocess.Process) -> None:
    _logger.info("pid: %s", proc.pid)


# ── Pre-start hooks ───────────────────────────────────────────────────────────


def redirect_output(path: str | Path, stdin: str | Path | None = None) -> PreHook:
    """Append the program's stdout and stderr to ``path``.

    When ``stdin`` is given the program reads its input from that file.
    The files are closed once the process has been reaped.
    """

    def _redirect(invocation: Invocation) -> None:
        out = open(path, "ab")
        invocation.closing.append(out)
        invocation.stdout = out
        invocation.stderr = out
        if stdin is not None:
            src = open(stdin, "rb")
            invocation.closing.append(src)
            invocation.stdin = src

    return _redirect


def with_env(**variables: str) -> PreHook:
    """Overlay ``variables`` onto the inherited environment.

    e.g. ``with_env(FFREPORT="file=report.log:level=32")``
    """

    def _env(invocation: Invocation) -> None:
        base = invocation.env if invocation.env is not None else dict(os.environ)
        invocation.env = {**base, **variables}

    return _env


def chain_pre_hooks(*hooks: PreHook) -> PreHook:
    """Run several pre-start hooks in order, stopping at the first failure."""

    async def _chain(invocation: Invocation) -> None:
        for hook in hooks:
            await call_hook(hook, invocation)

    return _chain
