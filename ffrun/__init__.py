"""ffrun — run FFmpeg (or any program) from asyncio with lifecycle hooks."""

from importlib.metadata import version, PackageNotFoundError

from ffrun.exceptions import (
    ExitError,
    FfrunError,
    LaunchError,
    PreHookError,
    ResolutionError,
)
from ffrun.runner.base import BaseRunner
from ffrun.runner.hooked import (
    HookedRunner,
    RunnerConfig,
    custom_path,
    done_hook,
    hook_runner,
    post_hook,
    pre_hook,
)
from ffrun.types import Invocation, RunResult, RunState, split_args

try:
    __version__ = version("ffrun")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development

__all__ = [
    "BaseRunner",
    "ExitError",
    "FfrunError",
    "HookedRunner",
    "Invocation",
    "LaunchError",
    "PreHookError",
    "ResolutionError",
    "RunResult",
    "RunState",
    "RunnerConfig",
    "custom_path",
    "done_hook",
    "hook_runner",
    "post_hook",
    "pre_hook",
    "split_args",
]
