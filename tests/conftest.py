"""Pytest hooks and fixtures."""

import shlex
import sys
from pathlib import Path

import pytest

FAKE_WORKER = Path(__file__).parent / "fixtures" / "fake_memory_worker.py"


def worker_command(mode: str = "normal") -> str:
    """Shell-style command line that launches the scripted fake worker."""
    return shlex.join([sys.executable, str(FAKE_WORKER), mode])


@pytest.fixture
def fake_worker_command():
    return worker_command
