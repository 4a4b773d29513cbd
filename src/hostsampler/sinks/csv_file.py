"""CSV file sink.

Appends one row per metric value to a CSV file:

    timestamp,metric_type,metric_key,metric_value
    18-10-2026 13:52:01,cpu,total,12.50
    18-10-2026 13:52:01,cpu,core_0,8.33
    18-10-2026 13:52:01,memory,used,11718

The header is written only when the file does not exist yet. Memory
values are written in MB.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from hostsampler.errors import SinkWriteError
from hostsampler.models.base import MetricsSnapshot
from hostsampler.sinks.base import Sink, kb_to_mb

logger = logging.getLogger(__name__)

CSV_HEADER = ("timestamp", "metric_type", "metric_key", "metric_value")


def snapshot_rows(snapshot: MetricsSnapshot) -> list[tuple[str, str, str, str]]:
    """Flatten a snapshot into CSV rows (header excluded)."""
    ts = snapshot.timestamp
    rows: list[tuple[str, str, str, str]] = []

    if snapshot.cpu is not None:
        if snapshot.cpu.total is not None:
            rows.append((ts, "cpu", "total", f"{snapshot.cpu.total:.2f}"))
        for core_id, usage in snapshot.cpu.cores.items():
            rows.append((ts, "cpu", f"core_{core_id}", f"{usage:.2f}"))

    if snapshot.memory is not None:
        for key, value in snapshot.memory.items():
            rows.append((ts, "memory", key, str(kb_to_mb(value))))

    return rows


class FileSink(Sink):
    """Appends snapshots to a CSV file.

    The file is opened per snapshot, so it can be rotated or removed
    between cycles; a removed file gets a fresh header.

    Attributes:
        path: Target CSV file
    """

    name: str = "file"

    def __init__(self, path: str | Path) -> None:
        """Initialize the file sink.

        Args:
            path: CSV file to append to (``~`` is expanded)
        """
        self.path = Path(path).expanduser()

    def emit(self, snapshot: MetricsSnapshot) -> None:
        rows = snapshot_rows(snapshot)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_header = not self.path.exists()
            with open(self.path, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f, lineterminator="\n")
                if write_header:
                    writer.writerow(CSV_HEADER)
                writer.writerows(rows)
        except OSError as e:
            raise SinkWriteError(f"{self.name}:{self.path}", e.strerror or str(e)) from e

        logger.debug("Appended %d rows to %s", len(rows), self.path)

    def __repr__(self) -> str:
        return f"FileSink(path={str(self.path)!r})"
