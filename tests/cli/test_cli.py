"""Tests for the ffrun CLI."""

from __future__ import annotations

import sys

import pytest
from typer.testing import CliRunner

from ffrun.cli import main as cli_main

cli = CliRunner()


def test_version():
    result = cli.invoke(cli_main._app, ["version"])
    assert result.exit_code == 0
    assert "ffrun v" in result.output


def test_which_finds_interpreter():
    result = cli.invoke(cli_main._app, ["which", "--path", sys.executable])
    assert result.exit_code == 0


def test_which_unknown_executable():
    result = cli.invoke(cli_main._app, ["which", "--path", "ffrun-no-such-binary-x9"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_run_clean_exit(script):
    prog = script("pass")
    result = cli.invoke(cli_main._app, ["run", "--path", sys.executable, "--", prog])
    assert result.exit_code == 0
    assert "pid:" in result.output
    assert "Exited cleanly" in result.output


def test_run_mirrors_exit_status(script):
    prog = script("import sys; sys.exit(3)")
    result = cli.invoke(cli_main._app, ["run", "--path", sys.executable, "--", prog])
    assert result.exit_code == 3
    assert "exit status 3" in result.output


def test_run_unknown_executable():
    result = cli.invoke(cli_main._app, ["run", "--path", "ffrun-no-such-binary-x9", "--", "-i test.mp4"])
    assert result.exit_code == 1


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_run_timeout_cancels(sleeper):
    result = cli.invoke(
        cli_main._app,
        ["run", "--path", sys.executable, "--timeout", "0.3", "--", sleeper],
    )
    assert result.exit_code == 130
    assert "cancelled" in result.output


def test_run_log_file(script, tmp_path):
    log = tmp_path / "proc.log"
    prog = script("print('hello from the program')")
    result = cli.invoke(
        cli_main._app,
        ["run", "--path", sys.executable, "--log-file", str(log), "--", prog],
    )
    assert result.exit_code == 0
    assert "hello from the program" in log.read_text()


def test_unknown_first_arg_routes_to_run(monkeypatch):
    seen = []
    monkeypatch.setattr(cli_main, "_app", lambda: seen.append(list(sys.argv)))

    cli_main.app(["-i", "in.mp4", "out.mp4"])

    assert seen == [["ffrun", "run", "--", "-i in.mp4 out.mp4"]]


def test_known_subcommand_passes_through(monkeypatch):
    seen = []
    monkeypatch.setattr(cli_main, "_app", lambda: seen.append(list(sys.argv)))

    cli_main.app(["which", "--path", "ffmpeg"])

    assert seen == [["ffrun", "which", "--path", "ffmpeg"]]
