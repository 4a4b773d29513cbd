"""Sampling engine for hostsampler.

- DeltaTracker: Turns cumulative CPU counters into utilization percentages
- MetricsCollector: Runs one sampling pass and builds a MetricsSnapshot
- SamplingScheduler: Repeats the pass on a background thread at a fixed period
"""

from hostsampler.collectors.delta import AGGREGATE, DeltaTracker
from hostsampler.collectors.metrics import MEMORY_SPECS, MetricsCollector, select_memory
from hostsampler.collectors.scheduler import (
    SamplingScheduler,
    SchedulerState,
    SchedulerStats,
)

__all__ = [
    "AGGREGATE",
    "DeltaTracker",
    "MEMORY_SPECS",
    "MetricsCollector",
    "select_memory",
    "SamplingScheduler",
    "SchedulerState",
    "SchedulerStats",
]
