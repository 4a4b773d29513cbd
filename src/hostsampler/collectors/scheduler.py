"""Sampling scheduler.

Runs collect-then-emit on one background worker thread at a fixed period.

Lifecycle: IDLE -> RUNNING -> STOPPED. STOPPED is terminal; a new
scheduler is needed to sample again.

Key features:
- Exactly one worker thread, cycles never overlap
- Cooperative stop: the worker finishes its current cycle, then exits
- A failing cycle is logged and counted, the loop keeps going
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging
import threading
import time

from hostsampler.errors import SchedulerStateError
from hostsampler.models.base import MetricsSnapshot
from hostsampler.sentry import capture_collector_error

logger = logging.getLogger(__name__)

CollectFn = Callable[[], MetricsSnapshot]
SinkFn = Callable[[MetricsSnapshot], None]


class SchedulerState(str, Enum):
    """Lifecycle states of a SamplingScheduler."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class SchedulerStats:
    """Statistics about the scheduler's state and performance.

    Attributes:
        state: Current lifecycle state
        cycles: Number of completed cycles
        failures: Number of cycles that raised
        last_cycle_ms: Duration of the most recent cycle in milliseconds
        average_cycle_ms: Average cycle duration in milliseconds
    """

    state: SchedulerState = SchedulerState.IDLE
    cycles: int = 0
    failures: int = 0
    last_cycle_ms: float = 0.0
    average_cycle_ms: float = 0.0


class SamplingScheduler:
    """Drives collect-then-emit on a fixed period.

    Example:
        scheduler = SamplingScheduler(
            collect=lambda: collector.collect([0], ["used"]),
            sink=router.emit,
            period=1,
        )
        scheduler.start()
        # ... later ...
        scheduler.stop()
    """

    def __init__(
        self,
        collect: CollectFn,
        sink: SinkFn,
        period: float,
        name: str = "hostsampler-worker",
    ) -> None:
        """Initialize the scheduler.

        Args:
            collect: Produces one snapshot per call
            sink: Consumes each snapshot before the next wait
            period: Seconds to wait between cycles (must be positive)
            name: Name of the worker thread

        Raises:
            ValueError: If period is not positive
        """
        if period <= 0:
            raise ValueError("Period must be positive")

        self._collect = collect
        self._sink = sink
        self._period = period
        self._name = name

        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._worker: threading.Thread | None = None

        self._cycles = 0
        self._failures = 0
        self._last_cycle_ms = 0.0
        self._total_cycle_ms = 0.0

    @property
    def period(self) -> float:
        """Seconds between cycles."""
        return self._period

    @property
    def state(self) -> SchedulerState:
        """Current lifecycle state."""
        return self._state

    @property
    def running(self) -> bool:
        """Check if the scheduler is running."""
        return self._state is SchedulerState.RUNNING

    @property
    def stats(self) -> SchedulerStats:
        """Get scheduler statistics."""
        return SchedulerStats(
            state=self._state,
            cycles=self._cycles,
            failures=self._failures,
            last_cycle_ms=self._last_cycle_ms,
            average_cycle_ms=self._total_cycle_ms / self._cycles if self._cycles else 0.0,
        )

    def start(self) -> None:
        """Spawn the worker thread.

        Does nothing if already running.

        Raises:
            SchedulerStateError: If the scheduler was already stopped
        """
        with self._state_lock:
            if self._state is SchedulerState.RUNNING:
                return
            if self._state is SchedulerState.STOPPED:
                raise SchedulerStateError("A stopped scheduler cannot be restarted")

            self._state = SchedulerState.RUNNING
            self._worker = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._worker.start()

        logger.info("Sampling started (period %ss)", self._period)

    def stop(self) -> None:
        """Ask the worker to exit and wait for it.

        The cycle in progress, if any, completes first. Does nothing if the
        scheduler was never started or is already stopped.
        """
        with self._state_lock:
            if self._state is not SchedulerState.RUNNING:
                return
            self._state = SchedulerState.STOPPED
            self._stop_event.set()
            worker = self._worker

        if worker is not None and worker is not threading.current_thread():
            worker.join()
        self._worker = None

        logger.info("Sampling stopped after %d cycles", self._cycles)

    def run_once(self) -> bool:
        """Run a single cycle on the calling thread.

        Returns:
            True if the cycle completed without error
        """
        return self._tick()

    def _run(self) -> None:
        """Worker loop: tick, then wait one period, until stopped."""
        while not self._stop_event.is_set():
            self._tick()
            self._stop_event.wait(self._period)

    def _tick(self) -> bool:
        start = time.perf_counter()
        try:
            self._sink(self._collect())
            ok = True
        except Exception as e:
            self._failures += 1
            ok = False
            logger.warning("Sampling cycle failed: %s: %s", type(e).__name__, e)
            capture_collector_error(self._name, e, extra={"cycle": self._cycles + 1})

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._cycles += 1
        self._last_cycle_ms = elapsed_ms
        self._total_cycle_ms += elapsed_ms
        return ok
