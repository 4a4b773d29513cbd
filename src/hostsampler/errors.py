"""Exception hierarchy for hostsampler.

Configuration errors are fatal at startup. Everything else is recovered
inside the sampling loop and only ever logged:

- SourceReadError: a kernel pseudo-file could not be read this cycle
- SinkWriteError: a sink could not render or write a snapshot
- SchedulerStateError: a lifecycle transition that is not allowed
"""


class HostSamplerError(Exception):
    """Base class for all hostsampler errors."""


class SourceReadError(HostSamplerError):
    """A counter source could not be read.

    Attributes:
        path: The pseudo-file that failed
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class SinkWriteError(HostSamplerError):
    """A sink failed to write a snapshot.

    Attributes:
        sink_name: Name of the sink that failed
    """

    def __init__(self, sink_name: str, reason: str) -> None:
        self.sink_name = sink_name
        self.reason = reason
        super().__init__(f"Sink '{sink_name}' failed: {reason}")


class SchedulerStateError(HostSamplerError):
    """Raised on an invalid scheduler lifecycle transition."""
