"""HookedRunner — starts a program and supervises it until it exits.

Hooks get access to the command before it starts, to the running process
right after it starts, and to the process again when the caller's cancel
signal fires.

Usage:
    from ffrun.runner.hooked import HookedRunner
    from ffrun.runner.hooks import interrupt_process, log_pid

    runner = HookedRunner(post=log_pid, on_cancel=interrupt_process)
    stop = asyncio.Event()
    result = await runner.run("-loglevel warning -y -i in.mp4 out.mp4", stop)
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import BaseModel, field_validator

from ffrun.exceptions import ExitError, LaunchError, PreHookError, ResolutionError
from ffrun.runner.base import BaseRunner, CancelSignal
from ffrun.runner.hooks import call_hook, kill_process
from ffrun.runner.state_machine import RunStateMachine
from ffrun.types import (
    Invocation,
    PreHook,
    ProcessHook,
    RunResult,
    RunState,
    TransitionCallback,
    new_id,
    split_args,
)

_logger = logging.getLogger(__name__)

Option = Callable[[dict[str, Any]], None]


class RunnerConfig(BaseModel):
    """Immutable configuration of a HookedRunner."""

    path: str = "ffmpeg"
    pre: PreHook | None = None
    post: ProcessHook | None = None
    on_cancel: ProcessHook | None = kill_process
    listeners: tuple[TransitionCallback, ...] = ()

    model_config = {"frozen": True}

    @field_validator("path")
    @classmethod
    def _path_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("executable path must not be blank")
        return v


def resolve_executable(name: str) -> str:
    """Resolve ``name`` to an absolute executable path using PATH rules.

    A name with a directory component is checked as-is instead of
    being searched for.
    """
    found = shutil.which(name)
    if found is None:
        raise ResolutionError(name)
    return os.path.abspath(found)


class _CancelWatcher:
    """Runs the on-cancel hook at most once for one process.

    The background task blocks on the caller's cancel signal. ``close()``
    tears it down once the process has exited; a watcher that already saw
    the signal is waited for instead, so the hook is never cut short.
    """

    def __init__(
        self,
        hook: ProcessHook | None,
        proc: asyncio.subprocess.Process,
        machine: RunStateMachine,
    ) -> None:
        self._hook = hook
        self._proc = proc
        self._machine = machine
        self._task: asyncio.Task | None = None
        self._waiting = False
        self.fired = False

    def start(self, cancel: CancelSignal | None) -> None:
        if cancel is not None:
            self._waiting = True
            self._task = asyncio.create_task(self._watch(cancel))

    async def _watch(self, cancel: CancelSignal) -> None:
        await cancel.wait()
        self._waiting = False
        await self.fire()

    async def fire(self) -> None:
        if self.fired:
            return
        self.fired = True
        _logger.warning("Run %s cancelled, stopping pid %s", self._machine.run_id, self._proc.pid)
        # A failing listener must not keep the hook from running
        try:
            await self._machine.transition(RunState.CANCEL_REQUESTED)
        finally:
            try:
                await self._machine.transition(RunState.TERMINATING)
            finally:
                if self._hook is not None:
                    await call_hook(self._hook, self._proc)

    async def close(self) -> None:
        """Tear down the watcher; re-raises an on-cancel hook failure."""
        task = self._task
        if task is None:
            return
        if self._waiting:
            task.cancel()
        try:
            await asyncio.wait([task])
        except asyncio.CancelledError:
            # The hook is already running: let it finish before giving up
            await asyncio.wait([task])
            if not task.cancelled():
                task.exception()
            raise
        if not task.cancelled():
            task.result()


class HookedRunner(BaseRunner):
    """Runs a program and lets hooks access it at each lifecycle point.

    The default runner searches ``ffmpeg`` on PATH and kills (-9) the
    process when the cancel signal fires.
    """

    def __init__(self, config: RunnerConfig | None = None, **fields: Any) -> None:
        if config is not None and fields:
            raise TypeError("pass either a RunnerConfig or keyword fields, not both")
        self._config = config if config is not None else RunnerConfig(**fields)

    @classmethod
    def from_settings(cls, settings: Any, **fields: Any) -> HookedRunner:
        """Build a runner whose executable comes from FfrunSettings."""
        fields.setdefault("path", settings.ffmpeg_path)
        return cls(**fields)

    @property
    def config(self) -> RunnerConfig:
        return self._config

    async def run(self, arg: str, cancel: CancelSignal | None = None) -> RunResult:
        """Run the program (path + arg) and wait for its exit.

        Raises ResolutionError, PreHookError or LaunchError when the
        process could not be started, and ExitError when it exited with
        a non-zero status. Cancellation of the calling task is treated
        like the cancel signal: the on-cancel hook runs, the process is
        reaped and the CancelledError propagates.
        """
        machine = RunStateMachine(new_id(), self._config.listeners)

        await machine.transition(RunState.RESOLVING)
        try:
            path = resolve_executable(self._config.path)
        except ResolutionError:
            await machine.transition(RunState.FAILED)
            raise
        _logger.debug("Resolved %s to %s", self._config.path, path)

        invocation = Invocation(path=path, args=split_args(arg))
        try:
            await machine.transition(RunState.PRE_HOOK)
            if self._config.pre is not None:
                try:
                    await call_hook(self._config.pre, invocation)
                except Exception as e:
                    await machine.transition(RunState.FAILED)
                    raise PreHookError(e) from e

            await machine.transition(RunState.STARTING)
            try:
                proc = await asyncio.create_subprocess_exec(
                    invocation.path,
                    *invocation.args,
                    stdin=invocation.stdin,
                    stdout=invocation.stdout,
                    stderr=invocation.stderr,
                    env=invocation.env,
                    cwd=invocation.cwd,
                )
            except OSError as e:
                await machine.transition(RunState.FAILED)
                raise LaunchError(invocation.path, e) from e

            started_at = datetime.now(timezone.utc)
            returncode, cancelled = await self._supervise(proc, cancel, machine, invocation)
        finally:
            invocation.close()

        result = RunResult(
            run_id=machine.run_id,
            command=invocation.command,
            pid=proc.pid,
            returncode=returncode,
            cancelled=cancelled,
            started_at=started_at,
            ended_at=datetime.now(timezone.utc),
        )
        await machine.transition(RunState.DONE)

        if returncode != 0:
            _logger.info("Run %s pid %s exited with %s", machine.run_id, proc.pid, returncode)
            raise ExitError(result)
        _logger.debug("Run %s pid %s exited cleanly", machine.run_id, proc.pid)
        return result

    async def _supervise(
        self,
        proc: asyncio.subprocess.Process,
        cancel: CancelSignal | None,
        machine: RunStateMachine,
        invocation: Invocation,
    ) -> tuple[int, bool]:
        """Race the cancel signal against process exit; always reap."""
        watcher = _CancelWatcher(self._config.on_cancel, proc, machine)
        try:
            await machine.transition(RunState.RUNNING)
            _logger.info("Run %s started pid %s: %s", machine.run_id, proc.pid, " ".join(invocation.command))
            if self._config.post is not None:
                await call_hook(self._config.post, proc)
            watcher.start(cancel)
            returncode = await proc.wait()
        except (Exception, asyncio.CancelledError):
            # Failing listener or post-start hook, or cancelled caller: stop and reap the child
            try:
                try:
                    await watcher.fire()
                finally:
                    try:
                        await proc.wait()
                    finally:
                        await watcher.close()
            finally:
                await _fail(machine)
            raise

        try:
            await watcher.close()
        except (Exception, asyncio.CancelledError):
            await _fail(machine)
            raise
        await machine.transition(RunState.WAITED)
        return returncode, watcher.fired


async def _fail(machine: RunStateMachine) -> None:
    """Move a reaped run to FAILED, through WAITED when the state allows it."""
    if machine.can_transition(RunState.WAITED):
        await machine.transition(RunState.WAITED)
    if machine.can_transition(RunState.FAILED):
        await machine.transition(RunState.FAILED)


def hook_runner(*options: Option) -> HookedRunner:
    """Build a HookedRunner from an ordered sequence of options.

    Options are applied to the default configuration in order; a later
    option overrides an earlier one.
    """
    fields: dict[str, Any] = {}
    for option in options:
        option(fields)
    return HookedRunner(RunnerConfig(**fields))


def custom_path(path: str) -> Option:
    """Set the executable, resolved with PATH rules at run time."""
    def _apply(fields: dict[str, Any]) -> None:
        fields["path"] = path
    return _apply


def pre_hook(hook: PreHook) -> Option:
    """Run ``hook`` on the unstarted Invocation. Raising stops the launch."""
    def _apply(fields: dict[str, Any]) -> None:
        fields["pre"] = hook
    return _apply


def post_hook(hook: ProcessHook) -> Option:
    """Run ``hook`` right after the process starts."""
    def _apply(fields: dict[str, Any]) -> None:
        fields["post"] = hook
    return _apply


def done_hook(hook: ProcessHook) -> Option:
    """Replace the default kill on cancellation.

    Typically sends a signal FFmpeg treats as a normal exit instead.
    """
    def _apply(fields: dict[str, Any]) -> None:
        fields["on_cancel"] = hook
    return _apply
