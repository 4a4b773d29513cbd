"""Kernel counter sources.

Reads the raw text of /proc/stat and /proc/meminfo at call time and parses
it into typed values. Nothing here keeps state between calls; turning
cumulative counters into percentages is the job of the delta tracker.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hostsampler.errors import SourceReadError
from hostsampler.models.base import CpuTimes

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = "/proc"

AGGREGATE_LABEL = "cpu"

# user nice system idle iowait irq softirq
CPU_FIELD_COUNT = 7


def parse_cpu_line(line: str) -> CpuTimes | None:
    """Parse one ``cpu``/``cpuN`` line of /proc/stat.

    Fields after softirq (steal, guest, ...) are ignored.

    Args:
        line: Raw line, e.g. ``"cpu0 100 0 100 700 50 0 50 0 0 0"``

    Returns:
        CpuTimes, or None if the line has fewer than seven counters or a
        counter is not a non-negative integer
    """
    tokens = line.split()
    if len(tokens) < CPU_FIELD_COUNT + 1 or not tokens[0].startswith(AGGREGATE_LABEL):
        logger.debug("Skipping short cpu line: %r", line)
        return None

    try:
        values = [int(token) for token in tokens[1 : CPU_FIELD_COUNT + 1]]
    except ValueError:
        logger.debug("Skipping cpu line with non-numeric counters: %r", line)
        return None

    if any(value < 0 for value in values):
        logger.debug("Skipping cpu line with negative counters: %r", line)
        return None

    user, nice, system, idle, iowait, irq, softirq = values
    return CpuTimes(
        label=tokens[0],
        user=user,
        nice=nice,
        system=system,
        idle=idle,
        iowait=iowait,
        irq=irq,
        softirq=softirq,
    )


def find_cpu_line(lines: list[str], label: str) -> str | None:
    """Return the first line whose label is exactly ``label``.

    ``cpu1`` never matches a ``cpu10`` line, so a missing core is reported
    as missing instead of borrowing another core's counters.
    """
    for line in lines:
        tokens = line.split(None, 1)
        if tokens and tokens[0] == label:
            return line
    return None


def core_label(core_id: int) -> str:
    """Label of a per-core line in /proc/stat."""
    return f"{AGGREGATE_LABEL}{core_id}"


def parse_meminfo(lines: list[str]) -> dict[str, int]:
    """Parse /proc/meminfo lines of the form ``<Key>: <value> [unit]``.

    Malformed lines are skipped. Values are returned as printed by the
    kernel (kB for sized entries, plain counts for HugePages_*).

    Args:
        lines: Raw lines of the file

    Returns:
        Mapping of key to integer value
    """
    values: dict[str, int] = {}
    for line in lines:
        key, sep, rest = line.partition(":")
        key = key.strip()
        parts = rest.split()
        if not sep or not key or not parts:
            if line.strip():
                logger.debug("Skipping malformed meminfo line: %r", line)
            continue
        try:
            values[key] = int(parts[0])
        except ValueError:
            logger.debug("Skipping meminfo line with non-numeric value: %r", line)
    return values


class CounterSource:
    """Reads kernel counter files on demand.

    Example:
        source = CounterSource()
        lines = source.read_cpu_lines()
        memory = source.read_meminfo()

    Attributes:
        stat_path: Path of the CPU counter file
        meminfo_path: Path of the memory counter file
    """

    def __init__(self, proc_root: str | Path = DEFAULT_PROC_ROOT) -> None:
        """Initialize the source.

        Args:
            proc_root: Directory holding ``stat`` and ``meminfo``
        """
        root = Path(proc_root)
        self.stat_path = root / "stat"
        self.meminfo_path = root / "meminfo"

    def _read_lines(self, path: Path) -> list[str]:
        try:
            with open(path, encoding="ascii", errors="replace") as f:
                return f.read().splitlines()
        except OSError as e:
            raise SourceReadError(str(path), e.strerror or str(e)) from e

    def read_cpu_lines(self) -> list[str]:
        """Read all ``cpu*`` lines of the stat file.

        Raises:
            SourceReadError: If the file cannot be read
        """
        return [
            line
            for line in self._read_lines(self.stat_path)
            if line.startswith(AGGREGATE_LABEL)
        ]

    def read_meminfo(self) -> dict[str, int]:
        """Read and parse the meminfo file.

        Raises:
            SourceReadError: If the file cannot be read
        """
        return parse_meminfo(self._read_lines(self.meminfo_path))
