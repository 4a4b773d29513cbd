"""Abstract base class for snapshot sinks.

A sink renders a MetricsSnapshot into some external representation.
Rendering (format) is kept separate from delivery (emit) so the text a
sink would produce can be inspected without touching the outside world.
"""

from abc import ABC, abstractmethod

from hostsampler.models.base import MetricsSnapshot

KB_PER_MB = 1024


def kb_to_mb(value_kb: int) -> int:
    """Convert kilobytes to whole megabytes (floor)."""
    return value_kb // KB_PER_MB


class Sink(ABC):
    """Destination for snapshots.

    Class Attributes:
        name: Identifier used in logs and errors
    """

    name: str = "unnamed_sink"

    @abstractmethod
    def emit(self, snapshot: MetricsSnapshot) -> None:
        """Deliver one snapshot.

        Raises:
            SinkWriteError: If the snapshot could not be written
        """
        ...

    def close(self) -> None:
        """Release resources held by the sink."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
