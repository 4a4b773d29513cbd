"""Metrics collector for one sampling pass.

This module turns raw kernel counters into a MetricsSnapshot:
- CPU: aggregate and per-core utilization via a DeltaTracker
- Memory: values selected by spec name from /proc/meminfo

A source that cannot be read, a malformed line, or a missing core only
removes the affected part of the snapshot. collect() itself does not fail
because of kernel data.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
import logging
from typing import Any

from hostsampler.collectors.delta import AGGREGATE, DeltaTracker
from hostsampler.errors import SourceReadError
from hostsampler.models.base import CpuMetrics, MetricsSnapshot
from hostsampler.sources import (
    AGGREGATE_LABEL,
    CounterSource,
    core_label,
    find_cpu_line,
    parse_cpu_line,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d-%m-%Y %H:%M:%S"


def _difference(values: Mapping[str, int], minuend: str, subtrahend: str) -> int | None:
    if minuend not in values or subtrahend not in values:
        return None
    return values[minuend] - values[subtrahend]


# Spec name -> function of the parsed meminfo mapping (kB), None if unavailable
MEMORY_SPECS: dict[str, Callable[[Mapping[str, int]], int | None]] = {
    "used": lambda v: _difference(v, "MemTotal", "MemFree"),
    "free": lambda v: v.get("MemFree"),
    "available": lambda v: v.get("MemAvailable"),
    "cached": lambda v: v.get("Cached"),
    "buffers": lambda v: v.get("Buffers"),
    "total": lambda v: v.get("MemTotal"),
    "swap_total": lambda v: v.get("SwapTotal"),
    "swap_free": lambda v: v.get("SwapFree"),
    "swap_used": lambda v: _difference(v, "SwapTotal", "SwapFree"),
}


def select_memory(values: Mapping[str, int], specs: Sequence[str]) -> dict[str, int]:
    """Pick the requested memory specs out of parsed meminfo values.

    Specs whose backing keys are missing, and unknown specs, are omitted.

    Args:
        values: Parsed /proc/meminfo mapping
        specs: Requested spec names, in output order

    Returns:
        Mapping of spec name to value in kB
    """
    selected: dict[str, int] = {}
    for spec in specs:
        compute = MEMORY_SPECS.get(spec)
        if compute is None:
            logger.debug("Ignoring unknown memory spec '%s'", spec)
            continue
        value = compute(values)
        if value is not None:
            selected[spec] = value
    return selected


class MetricsCollector:
    """Collects one MetricsSnapshot per call.

    The collector owns its DeltaTracker. It is meant to be driven from a
    single thread; the scheduler guarantees passes never overlap.

    Example:
        collector = MetricsCollector()
        collector.collect([0, 1], ["used", "free"])   # first pass: memory only
        snapshot = collector.collect([0, 1], ["used", "free"])
        snapshot.cpu.total

    Class Attributes:
        name: Identifier used in logs and error reports
    """

    name: str = "metrics"

    def __init__(
        self,
        source: CounterSource | None = None,
        tracker: DeltaTracker | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the collector.

        Args:
            source: Counter source (reads the real /proc by default)
            tracker: Delta tracker (a fresh one by default)
            clock: Returns the current local time
        """
        self.source = source if source is not None else CounterSource()
        self.tracker = tracker if tracker is not None else DeltaTracker()
        self._clock = clock
        self._total_collections = 0
        self._source_failures = 0
        self._last_collection: datetime | None = None

    @property
    def stats(self) -> dict[str, Any]:
        """Get collector statistics."""
        return {
            "name": self.name,
            "total_collections": self._total_collections,
            "source_failures": self._source_failures,
            "tracked_entities": len(self.tracker),
            "last_collection": self._last_collection,
        }

    def collect(
        self,
        core_ids: Sequence[int] | None,
        mem_specs: Sequence[str] | None,
    ) -> MetricsSnapshot:
        """Run one sampling pass.

        Args:
            core_ids: Cores to report, or None if CPU is not requested.
                The aggregate is reported whenever CPU is requested.
            mem_specs: Memory specs to report, or None if memory is not
                requested

        Returns:
            Snapshot stamped with the time the pass started
        """
        now = self._clock()
        self._total_collections += 1
        self._last_collection = now

        cpu = self._collect_cpu(core_ids) if core_ids is not None else None
        memory = self._collect_memory(mem_specs) if mem_specs is not None else None

        return MetricsSnapshot(
            timestamp=now.strftime(TIMESTAMP_FORMAT),
            cpu=cpu,
            memory=memory,
        )

    def _collect_cpu(self, core_ids: Sequence[int]) -> CpuMetrics | None:
        try:
            lines = self.source.read_cpu_lines()
        except SourceReadError as e:
            self._source_failures += 1
            logger.warning("CPU metrics skipped this cycle: %s", e)
            return None

        total = self._observe_line(lines, AGGREGATE_LABEL, AGGREGATE)

        cores: dict[int, float] = {}
        for core_id in dict.fromkeys(core_ids):
            usage = self._observe_line(lines, core_label(core_id), core_id)
            if usage is not None:
                cores[core_id] = usage

        return CpuMetrics(total=total, cores=cores)

    def _observe_line(self, lines: list[str], label: str, entity_id: Any) -> float | None:
        line = find_cpu_line(lines, label)
        if line is None:
            logger.debug("No '%s' line in %s", label, self.source.stat_path)
            return None

        times = parse_cpu_line(line)
        if times is None:
            return None

        return self.tracker.observe(entity_id, times.total, times.non_idle)

    def _collect_memory(self, mem_specs: Sequence[str]) -> dict[str, int] | None:
        try:
            values = self.source.read_meminfo()
        except SourceReadError as e:
            self._source_failures += 1
            logger.warning("Memory metrics skipped this cycle: %s", e)
            return None

        return select_memory(values, mem_specs)
