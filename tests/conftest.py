"""Shared fixtures for videomerger tests."""
import os
import stat
import sys
from pathlib import Path

import pytest

from videomerger.services import Notifier, Revealer

TOOL_TEMPLATE = """\
#!{python}
import signal
import sys
import time

args = sys.argv[1:]
inputs = [args[i + 1] for i, arg in enumerate(args) if arg == "-i"]
output = args[args.index("-o") + 1] if "-o" in args else None
mode = {mode!r}

if mode == "copy":
    with open(output, "wb") as out:
        for name in inputs:
            with open(name, "rb") as src:
                out.write(src.read())
    sys.exit(0)
if mode == "fail":
    print("bad input: " + (inputs[0] if inputs else "none"), file=sys.stderr)
    sys.exit(3)
if mode == "sleep":
    signal.signal(signal.SIGTERM, lambda *_: sys.exit({term_exit}))
    time.sleep(30)
    sys.exit(0)
"""

@pytest.fixture
def make_tool(tmp_path):
    """Write an executable stand-in for the merge tool.

    Modes: "copy" concatenates the inputs into the output, "fail" exits 3,
    "sleep" waits until terminated and exits with term_exit.
    """
    def _make(mode: str = "copy", term_exit: int = 143) -> Path:
        tool = tmp_path / f"fake-yamdi-{mode}-{term_exit}"
        tool.write_text(TOOL_TEMPLATE.format(python=sys.executable, mode=mode, term_exit=term_exit))
        tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return tool
    return _make

@pytest.fixture
def make_segment(tmp_path):
    """Create a media file with the given name and size."""
    def _make(name: str, size: int = 16, folder: Path = None) -> Path:
        folder = folder or tmp_path / "segments"
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / name
        path.write_bytes(os.urandom(size))
        return path
    return _make

class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def notify(self, title: str, body: str) -> None:
        self.messages.append((title, body))

    @property
    def titles(self):
        return [title for title, _ in self.messages]

class RecordingRevealer(Revealer):
    def __init__(self):
        self.revealed = []

    def reveal(self, path: Path) -> None:
        self.revealed.append(path)

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
def revealer():
    return RecordingRevealer()
