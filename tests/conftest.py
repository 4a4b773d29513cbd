"""Shared fixtures: a fake /proc directory under tmp_path."""

from collections.abc import Callable
from pathlib import Path

import pytest

STAT_T0 = """\
cpu  100 0 100 700 50 0 50 0 0 0
cpu0 50 0 50 350 25 0 25 0 0 0
cpu1 50 0 50 350 25 0 25 0 0 0
intr 12345 0 0
ctxt 67890
"""

STAT_T1 = """\
cpu  150 0 150 800 50 0 50 0 0 0
cpu0 100 0 50 350 25 0 25 0 0 0
cpu1 50 0 100 400 25 0 25 0 0 0
intr 12399 0 0
ctxt 67999
"""

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         4000000 kB
MemAvailable:    9000000 kB
Buffers:          300000 kB
Cached:          2048000 kB
SwapTotal:       2097152 kB
SwapFree:        1048576 kB
HugePages_Total:       0
"""


class FakeProc:
    """Writable stand-in for /proc with ``stat`` and ``meminfo``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write_stat(self, content: str) -> None:
        (self.root / "stat").write_text(content)

    def write_meminfo(self, content: str) -> None:
        (self.root / "meminfo").write_text(content)


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """Fake proc root populated with the t0 stat and the default meminfo."""
    root = tmp_path / "proc"
    root.mkdir()
    proc = FakeProc(root)
    proc.write_stat(STAT_T0)
    proc.write_meminfo(MEMINFO)
    return proc


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write config text to a file and return its path."""

    def _write(content: str, name: str = "config.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path

    return _write
