"""Abstract base for process runners."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol

from ffrun.types import RunResult


class CancelSignal(Protocol):
    """Anything with an awaitable ``wait()``, e.g. ``asyncio.Event``."""

    async def wait(self) -> Any: ...


class BaseRunner(ABC):
    @abstractmethod
    async def run(self, arg: str, cancel: CancelSignal | None = None) -> RunResult:
        """Start the program with ``arg`` and wait for it to exit.

        ``arg`` excludes the program path itself. ``cancel`` stops the
        program while it is still running.
        """
        ...
