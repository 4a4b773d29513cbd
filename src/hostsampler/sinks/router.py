"""Routes each snapshot to every configured sink.

A failing sink is logged and skipped; the remaining sinks still receive
the snapshot and the sampling loop is never interrupted.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging

from hostsampler.config.loader import ConsoleOutputConfig, FileOutputConfig, OutputConfig
from hostsampler.errors import SinkWriteError
from hostsampler.models.base import MetricsSnapshot
from hostsampler.sentry import add_breadcrumb
from hostsampler.sinks.base import Sink
from hostsampler.sinks.console import ConsoleSink
from hostsampler.sinks.csv_file import FileSink

logger = logging.getLogger(__name__)


def create_sink(output: OutputConfig) -> Sink:
    """Build the sink described by one ``outputs`` entry.

    Raises:
        ValueError: If the output type is not supported
    """
    if isinstance(output, ConsoleOutputConfig):
        return ConsoleSink()
    if isinstance(output, FileOutputConfig):
        return FileSink(output.path)
    raise ValueError(f"Unsupported output: {output!r}")


class SinkRouter:
    """Fans a snapshot out to an ordered list of sinks.

    Example:
        router = SinkRouter.from_config(config.outputs)
        router.emit(snapshot)
    """

    def __init__(self, sinks: Iterable[Sink] = ()) -> None:
        """Initialize the router.

        Args:
            sinks: Sinks in emit order
        """
        self._sinks: list[Sink] = list(sinks)
        self._total_failures = 0

    @classmethod
    def from_config(cls, outputs: Iterable[OutputConfig]) -> SinkRouter:
        """Create a router with one sink per ``outputs`` entry."""
        return cls(create_sink(output) for output in outputs)

    @property
    def sinks(self) -> list[Sink]:
        """Configured sinks, in emit order."""
        return list(self._sinks)

    @property
    def total_failures(self) -> int:
        """Number of failed sink writes since creation."""
        return self._total_failures

    def emit(self, snapshot: MetricsSnapshot) -> int:
        """Send a snapshot to every sink.

        Args:
            snapshot: The snapshot of the current cycle

        Returns:
            Number of sinks that failed
        """
        failures = 0
        for sink in self._sinks:
            try:
                sink.emit(snapshot)
            except SinkWriteError as e:
                failures += 1
                logger.warning("%s", e)
                add_breadcrumb(str(e), category="sink", level="warning")
            except Exception:
                failures += 1
                logger.exception("Unexpected error in sink %r", sink)
        self._total_failures += failures
        return failures

    def close(self) -> None:
        """Close all sinks."""
        for sink in self._sinks:
            try:
                sink.close()
            except Exception:
                logger.exception("Error closing sink %r", sink)
