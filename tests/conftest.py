"""Shared test fixtures — small Python scripts stand in for FFmpeg."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

from ffrun.runner.hooked import HookedRunner


@pytest.fixture
def script(tmp_path):
    """Write a Python script into tmp_path and return its path as a string."""
    def _factory(source: str, name: str = "prog.py") -> str:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source))
        return str(path)
    return _factory


@pytest.fixture
def python_runner():
    """Runner for the current interpreter; the script path goes into ``arg``."""
    def _factory(**fields) -> HookedRunner:
        return HookedRunner(path=sys.executable, **fields)
    return _factory


@pytest.fixture
def sleeper(script):
    """A program that runs until it is stopped."""
    return script("""
        import time
        time.sleep(30)
    """, name="sleeper.py")


@pytest.fixture
def echo_args(script, tmp_path):
    """A program that writes its argv as JSON to ``argv.json``."""
    out = tmp_path / "argv.json"
    path = script(f"""
        import json, sys
        with open({str(out)!r}, "w") as f:
            json.dump(sys.argv[1:], f)
    """, name="echo_args.py")
    return path, out
