"""Console sink: human-readable text on a stream (stdout by default).

Output for one snapshot:

    System Metrics at 18-10-2026 13:52:01:
    CPU Usage:
      Total: 12.50%
      Core 0: 8.33%
    Memory Usage (MB):
      used: 11718
      free: 3906

followed by a blank line. Sections not present in the snapshot are left out.
"""

from __future__ import annotations

import sys
from typing import TextIO

from hostsampler.errors import SinkWriteError
from hostsampler.models.base import MetricsSnapshot
from hostsampler.sinks.base import Sink, kb_to_mb


class ConsoleSink(Sink):
    """Prints each snapshot as indented text."""

    name: str = "console"

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize the console sink.

        Args:
            stream: Text stream to write to (sys.stdout at emit time if None)
        """
        self._stream = stream

    def format(self, snapshot: MetricsSnapshot) -> str:
        """Render a snapshot as text, without the trailing blank line."""
        lines = [f"System Metrics at {snapshot.timestamp}:"]

        if snapshot.cpu is not None:
            lines.append("CPU Usage:")
            if snapshot.cpu.total is not None:
                lines.append(f"  Total: {snapshot.cpu.total:.2f}%")
            for core_id, usage in snapshot.cpu.cores.items():
                lines.append(f"  Core {core_id}: {usage:.2f}%")

        if snapshot.memory is not None:
            lines.append("Memory Usage (MB):")
            for key, value in snapshot.memory.items():
                lines.append(f"  {key}: {kb_to_mb(value)}")

        return "\n".join(lines)

    def emit(self, snapshot: MetricsSnapshot) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        try:
            stream.write(self.format(snapshot) + "\n\n")
            stream.flush()
        except (OSError, ValueError) as e:
            raise SinkWriteError(self.name, str(e)) from e
