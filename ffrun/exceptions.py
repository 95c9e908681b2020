"""Custom exception hierarchy for ffrun."""

from __future__ import annotations

import signal as _signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ffrun.types import RunResult


class FfrunError(Exception):
    """Base for all ffrun errors."""


class ResolutionError(FfrunError):
    """The executable could not be found on the search path."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"executable {name!r} not found in PATH")


class PreHookError(FfrunError):
    """The pre-start hook aborted the launch. The process was never started."""

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(f"pre-start hook failed: {error}")


class LaunchError(FfrunError):
    """The OS refused to create the process."""

    def __init__(self, path: str, error: OSError) -> None:
        self.path = path
        self.error = error
        super().__init__(f"cannot start {path}: {error}")


class ExitError(FfrunError):
    """The process ran and exited with a non-zero status or by a signal.

    ``cancelled`` tells a run that was cancelled (and most likely killed by
    the on-cancel hook) apart from one that failed on its own.
    """

    def __init__(self, result: RunResult) -> None:
        self.result = result
        super().__init__(self._describe())

    @property
    def returncode(self) -> int:
        return self.result.returncode

    @property
    def signal(self) -> int | None:
        """Signal number that terminated the process, if any (POSIX only)."""
        if self.result.returncode < 0:
            return -self.result.returncode
        return None

    @property
    def cancelled(self) -> bool:
        return self.result.cancelled

    def _describe(self) -> str:
        sig = self.signal
        if sig is not None:
            try:
                status = f"signal: {_signal.Signals(sig).name}"
            except ValueError:
                status = f"signal: {sig}"
        else:
            status = f"exit status {self.returncode}"
        if self.cancelled:
            return f"{status} (cancelled)"
        return status


class RunStateError(FfrunError):
    """Invalid run state transition."""
