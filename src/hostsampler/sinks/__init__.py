"""Snapshot sinks for hostsampler.

- Sink: Abstract destination with emit(snapshot)
- ConsoleSink: Human-readable text on stdout
- FileSink: Append-only CSV file
- SinkRouter: Sends each snapshot to all configured sinks
"""

from hostsampler.sinks.base import Sink, kb_to_mb
from hostsampler.sinks.console import ConsoleSink
from hostsampler.sinks.csv_file import CSV_HEADER, FileSink, snapshot_rows
from hostsampler.sinks.router import SinkRouter, create_sink

__all__ = [
    "Sink",
    "kb_to_mb",
    "ConsoleSink",
    "FileSink",
    "CSV_HEADER",
    "snapshot_rows",
    "SinkRouter",
    "create_sink",
]
