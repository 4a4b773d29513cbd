"""System monitor: wires configuration into the sampling engine.

Builds a MetricsCollector, a SinkRouter and a SamplingScheduler from a
validated Config and exposes start/stop for the controlling thread.
"""

from __future__ import annotations

from functools import lru_cache
import logging
from types import TracebackType

import psutil

from hostsampler.collectors.metrics import MetricsCollector
from hostsampler.collectors.scheduler import SamplingScheduler, SchedulerState
from hostsampler.config.loader import Config
from hostsampler.models.base import MetricsSnapshot
from hostsampler.sinks.router import SinkRouter
from hostsampler.sources import CounterSource

logger = logging.getLogger(__name__)


# Cache CPU count - it never changes during runtime
@lru_cache(maxsize=1)
def _get_cpu_count() -> int:
    """Get the number of logical CPU cores (cached)."""
    return psutil.cpu_count(logical=True) or 1


class SystemMonitor:
    """Periodic sampler built from a Config.

    Example:
        monitor = SystemMonitor(load_config("config.yaml"))
        monitor.start()
        input()
        monitor.stop()

    Attributes:
        config: The validated configuration
        collector: Collector owning the delta state
        router: Router holding the configured sinks
        scheduler: Scheduler driving the worker thread
    """

    def __init__(
        self,
        config: Config,
        collector: MetricsCollector | None = None,
        router: SinkRouter | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Validated configuration
            collector: Collector to use (built from config if None)
            router: Router to use (built from config.outputs if None)
        """
        self.config = config
        if collector is None:
            collector = MetricsCollector(source=CounterSource(config.settings.proc_root))
        if router is None:
            router = SinkRouter.from_config(config.outputs)
        self.collector = collector
        self.router = router
        self._core_ids = config.cpu_core_ids()
        self._mem_specs = config.memory_specs()
        self.scheduler = SamplingScheduler(
            collect=self.collect,
            sink=self.router.emit,
            period=config.period,
        )
        self._check_core_ids()

    def _check_core_ids(self) -> None:
        if not self._core_ids:
            return
        cpu_count = _get_cpu_count()
        missing = [core for core in self._core_ids if core >= cpu_count]
        if missing:
            logger.warning(
                "Requested cores %s not present on this host (%d logical CPUs); "
                "they will be omitted",
                missing,
                cpu_count,
            )

    @property
    def state(self) -> SchedulerState:
        """Lifecycle state of the underlying scheduler."""
        return self.scheduler.state

    def collect(self) -> MetricsSnapshot:
        """Run one sampling pass with the configured metrics."""
        return self.collector.collect(self._core_ids, self._mem_specs)

    def start(self) -> None:
        """Start sampling on a background thread."""
        logger.info(
            "Starting monitor: period=%ss cores=%s memory=%s sinks=%s",
            self.config.period,
            self._core_ids,
            self._mem_specs,
            self.router.sinks,
        )
        self.scheduler.start()

    def stop(self) -> None:
        """Stop sampling and wait for the worker to exit."""
        self.scheduler.stop()
        self.router.close()

    def __enter__(self) -> SystemMonitor:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
