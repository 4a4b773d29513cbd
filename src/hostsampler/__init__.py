"""hostsampler - periodic host metrics sampler.

Reads CPU and memory counters exposed by the Linux kernel on a fixed
interval and writes each snapshot to the configured sinks.
"""

__version__ = "0.1.0"
