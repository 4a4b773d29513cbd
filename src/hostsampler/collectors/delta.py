"""Delta tracking for cumulative CPU counters.

The kernel exposes CPU time as jiffies accumulated since boot. A usage
percentage needs two readings of the same entity: the tracker keeps the
most recent reading per entity and turns each new one into a percentage
of non-idle time over the interval between them.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Final, Literal

from hostsampler.models.base import SamplePoint

logger = logging.getLogger(__name__)

AGGREGATE: Final = "aggregate"
"""Entity id of the whole-system ``cpu`` line."""

EntityId = int | Literal["aggregate"]


class DeltaTracker:
    """Per-entity previous-sample state and utilization computation.

    Entities are created lazily on first observation and live as long as
    the tracker. Each entity only ever touches its own slot.

    Example:
        tracker = DeltaTracker()
        tracker.observe(AGGREGATE, 1000, 250)   # None: no history yet
        tracker.observe(AGGREGATE, 1200, 350)   # 50.0
    """

    def __init__(self) -> None:
        """Initialize an empty tracker."""
        self._previous: dict[EntityId, SamplePoint] = {}

    def observe(self, entity_id: EntityId, total: int, non_idle: int) -> float | None:
        """Record a sample and return the utilization since the previous one.

        Args:
            entity_id: AGGREGATE or a core index
            total: Cumulative jiffies in all states
            non_idle: Cumulative jiffies outside idle and iowait

        Returns:
            None on the first observation of the entity; 0.0 when the total
            did not advance (counter reset or wraparound); otherwise the
            non-idle share of the interval as a percentage in [0, 100]
        """
        current = SamplePoint(total=total, non_idle=non_idle)
        previous = self._previous.get(entity_id)
        self._previous[entity_id] = current

        if previous is None:
            return None

        total_diff = current.total - previous.total
        if total_diff <= 0:
            if total_diff < 0:
                logger.debug(
                    "Counter for %s went backwards (%d -> %d)",
                    entity_id,
                    previous.total,
                    current.total,
                )
            return 0.0

        non_idle_diff = current.non_idle - previous.non_idle
        usage = 100.0 * non_idle_diff / total_diff
        return min(100.0, max(0.0, usage))

    def previous(self, entity_id: EntityId) -> SamplePoint | None:
        """Return the stored sample of an entity, if any."""
        return self._previous.get(entity_id)

    @property
    def tracked(self) -> Mapping[EntityId, SamplePoint]:
        """Read-only view of the stored samples."""
        return dict(self._previous)

    def reset(self, entity_id: EntityId | None = None) -> None:
        """Forget stored samples.

        Args:
            entity_id: Entity to forget, or None to forget all of them
        """
        if entity_id is None:
            self._previous.clear()
        else:
            self._previous.pop(entity_id, None)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._previous

    def __len__(self) -> int:
        return len(self._previous)
