"""Core types shared across ffrun."""

from __future__ import annotations

import asyncio
import re
import subprocess
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import IO, Any, Awaitable, Callable, TypeAlias

from pydantic import BaseModel, Field

# ── ID Types ──────────────────────────────────────────────────────────────────

RunId: TypeAlias = str


def new_id() -> str:
    return uuid.uuid4().hex[:12]


# ── Run States ────────────────────────────────────────────────────────────────


class RunState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    PRE_HOOK = "pre_hook"
    STARTING = "starting"
    RUNNING = "running"
    CANCEL_REQUESTED = "cancel_requested"
    TERMINATING = "terminating"
    WAITED = "waited"
    DONE = "done"
    FAILED = "failed"


# ── Arguments ─────────────────────────────────────────────────────────────────

# Unicode White_Space minus the ASCII separators \x1c-\x1f, which stay inside tokens
_WHITESPACE = re.compile(r"[\t\n\v\f\r \x85\xa0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+")


def split_args(arg: str) -> list[str]:
    """Split an argument string on runs of whitespace.

    There is no quoting or escaping: an argument that itself contains
    whitespace cannot be expressed.
    """
    return [token for token in _WHITESPACE.split(arg) if token]


# ── Invocation ────────────────────────────────────────────────────────────────


@dataclass
class Invocation:
    """An unstarted command: resolved executable, arguments and IO setup.

    The pre-start hook receives this object and may change anything on it.
    A stream left as ``subprocess.DEVNULL`` is connected to the null device;
    ``None`` inherits the caller's stream.
    """

    path: str
    args: list[str] = field(default_factory=list)
    stdin: int | IO[Any] | None = subprocess.DEVNULL
    stdout: int | IO[Any] | None = subprocess.DEVNULL
    stderr: int | IO[Any] | None = subprocess.DEVNULL
    env: dict[str, str] | None = None
    cwd: str | None = None
    # Closed by the runner once the process has been reaped
    closing: list[IO[Any]] = field(default_factory=list)

    @property
    def command(self) -> list[str]:
        return [self.path, *self.args]

    def close(self) -> None:
        while self.closing:
            self.closing.pop().close()


# ── Hooks ─────────────────────────────────────────────────────────────────────

PreHook: TypeAlias = Callable[[Invocation], Any]
ProcessHook: TypeAlias = Callable[[asyncio.subprocess.Process], Any]
TransitionCallback: TypeAlias = Callable[[RunId, RunState, RunState], Awaitable[None]]


# ── Results ───────────────────────────────────────────────────────────────────


class RunResult(BaseModel):
    """Outcome of one supervised run."""

    run_id: RunId = Field(default_factory=new_id)
    command: list[str]
    pid: int
    returncode: int
    cancelled: bool = False
    started_at: datetime
    ended_at: datetime

    @property
    def duration(self) -> float:
        return (self.ended_at - self.started_at).total_seconds()
