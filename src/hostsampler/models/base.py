"""Data models for hostsampler.

This module defines the data types that flow through one sampling pass:
- SamplePoint: Cumulative CPU counters of one tracked entity
- CpuTimes: The seven parsed fields of one /proc/stat line
- CpuMetrics: CPU utilization percentages of one snapshot
- MetricsSnapshot: Result of one sampling pass, handed to every sink
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True, slots=True)
class SamplePoint:
    """Cumulative jiffies since boot for one CPU entity.

    Both values are counters: they only grow while the entity exists.

    Attributes:
        total: Sum of all CPU states
        non_idle: Time spent outside idle and iowait
    """

    total: int
    non_idle: int


@dataclass(frozen=True, slots=True)
class CpuTimes:
    """The seven leading fields of a ``cpu`` / ``cpuN`` line in /proc/stat.

    Attributes:
        label: Line label (``cpu`` for the aggregate, ``cpuN`` for a core)
        user, nice, system, idle, iowait, irq, softirq: Jiffies per state
    """

    label: str
    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int

    @property
    def total(self) -> int:
        """Sum of all seven states."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
        )

    @property
    def non_idle(self) -> int:
        """Total minus idle and iowait."""
        return self.total - self.idle - self.iowait


class CpuMetrics(BaseModel):
    """CPU utilization of one sampling pass.

    Attributes:
        total: Aggregate usage percentage, None until two samples exist
        cores: Per-core usage percentage keyed by core id
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total: float | None = Field(
        default=None, ge=0.0, le=100.0, description="Aggregate CPU usage percentage"
    )
    cores: dict[int, float] = Field(
        default_factory=dict, description="Per-core CPU usage percentage"
    )


class MetricsSnapshot(BaseModel):
    """Complete result of one sampling pass.

    The model is frozen, so its fields cannot be reassigned, but the dicts
    it holds are plain dicts. Sinks read them and never modify them. A
    section is None when its metric type was not requested or its source
    could not be read this cycle.

    Attributes:
        timestamp: When the pass started, formatted for display
        cpu: CPU utilization section
        memory: Memory values in kilobytes keyed by spec name
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: str = Field(..., min_length=1)
    cpu: CpuMetrics | None = None
    memory: dict[str, int] | None = Field(default=None, description="Memory values in kB")
