"""Data models for hostsampler.

- SamplePoint, CpuTimes: Raw counter values read from the kernel
- CpuMetrics, MetricsSnapshot: Computed results of one sampling pass
"""

from hostsampler.models.base import (
    CpuMetrics,
    CpuTimes,
    MetricsSnapshot,
    SamplePoint,
)

__all__ = [
    # Raw counters
    "SamplePoint",
    "CpuTimes",
    # Snapshot models
    "CpuMetrics",
    "MetricsSnapshot",
]
