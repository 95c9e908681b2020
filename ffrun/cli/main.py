"""ffrun CLI — run FFmpeg under supervision.

`ffrun -i in.mp4 out.mp4` passes everything to the program.
`ffrun run`, `ffrun which`, `ffrun version` are management subcommands.

We intercept sys.argv BEFORE Typer sees it. If the first argument is not
a known subcommand, the whole input is handed to `run` as the program's
argument string.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

import typer
from rich.console import Console
from rich.markup import escape

from ffrun.config import settings
from ffrun.exceptions import ExitError, FfrunError
from ffrun.runner.hooked import HookedRunner, resolve_executable
from ffrun.runner.hooks import chain_pre_hooks, interrupt_process, kill_process, redirect_output, with_env

console = Console()

# Known subcommands; anything else goes to the program
_SUBCOMMANDS = {
    "run", "which", "version",
    "--help", "-h", "--install-completion", "--show-completion",
}

_app = typer.Typer(
    name="ffrun",
    help="ffrun -- run FFmpeg with cancellation and lifecycle hooks.",
    no_args_is_help=True,
)


@_app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log runner lifecycle at debug level"),
):
    """Configure logging for every subcommand."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _exit_code(err: ExitError) -> int:
    if err.cancelled:
        return 130
    if err.signal is not None:
        return 128 + err.signal
    return err.returncode


async def _run(runner: HookedRunner, arg: str, timeout: float) -> None:
    """Run once; SIGINT/SIGTERM and the timeout fire the cancel signal."""
    loop = asyncio.get_running_loop()
    cancel = asyncio.Event()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, cancel.set)
    timer = loop.call_later(timeout, cancel.set) if timeout > 0 else None

    try:
        result = await runner.run(arg, cancel)
    finally:
        if timer is not None:
            timer.cancel()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.remove_signal_handler(sig)

    console.print(f"[green]Exited cleanly[/green] after {result.duration:.1f}s")


@_app.command("run")
def run(
    arg: str = typer.Argument("", help="Program arguments, split on whitespace (use -- before options)"),
    path: str = typer.Option(settings.ffmpeg_path, "--path", "-p", help="Executable name or path"),
    timeout: float = typer.Option(settings.default_timeout, "--timeout", "-t", help="Cancel after N seconds (0 = never)"),
    graceful: bool = typer.Option(
        settings.graceful_cancel, "--graceful/--kill",
        help="Interrupt (SIGINT) instead of kill (SIGKILL) on cancel",
    ),
    log_file: str = typer.Option("", "--log-file", "-o", help="Append program output to this file"),
    report: str = typer.Option("", "--report", help="Write an FFmpeg report (FFREPORT) to this file"),
):
    """Run the program and wait for it to exit."""
    pre = []
    if log_file:
        pre.append(redirect_output(log_file))
    if report:
        pre.append(with_env(FFREPORT=f"file={report}:level=32"))

    runner = HookedRunner.from_settings(
        settings,
        path=path,
        pre=chain_pre_hooks(*pre) if pre else None,
        post=lambda proc: console.print(f"[dim]pid: {proc.pid}[/dim]"),
        on_cancel=interrupt_process if graceful else kill_process,
    )

    try:
        asyncio.run(_run(runner, arg, timeout))
    except ExitError as e:
        style = "yellow" if e.cancelled else "red"
        console.print(f"[{style}]{escape(str(e))}[/{style}]")
        raise typer.Exit(code=_exit_code(e))
    except FfrunError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)


@_app.command("which")
def which(
    path: str = typer.Option(settings.ffmpeg_path, "--path", "-p", help="Executable name or path"),
):
    """Show the executable that `run` would start."""
    try:
        console.print(resolve_executable(path), soft_wrap=True)
    except FfrunError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)


@_app.command("version")
def version_cmd():
    """Show ffrun version."""
    from ffrun import __version__
    console.print(f"ffrun v{__version__}")


def app(args: list[str] | None = None) -> None:
    """Entry point that hands unknown input straight to the program.

    If the first arg is NOT a known subcommand, we rewrite the args
    to route through the `run` command.
    """
    argv = args if args is not None else sys.argv[1:]

    if argv and argv[0] not in _SUBCOMMANDS:
        argv = ["run", "--", " ".join(argv)]

    # Patch sys.argv for Typer
    original_argv = sys.argv
    sys.argv = ["ffrun"] + argv

    try:
        _app()
    finally:
        sys.argv = original_argv


if __name__ == "__main__":
    app()
