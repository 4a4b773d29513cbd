"""Default configuration values for hostsampler.

Every key except ``settings.period`` has a default; the period must be
given explicitly since it defines what the sampler measures.

Environment Variables:
    HOSTSAMPLER_CONFIG: Config file path when none is passed on the command line
    HOSTSAMPLER_SENTRY_DSN: Enables Sentry error reporting
    Any string value can reference environment variables using ${VAR} syntax

Example config (YAML; the same structure in JSON is accepted too):

    settings:
      period: 2
    metrics:
      - type: cpu
        ids: [0, 1]
      - type: memory
        spec: [used, free, available]
    outputs:
      - type: console
      - type: file
        path: ~/hostsampler/metrics.csv
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "settings": {
        "proc_root": "/proc",  # Directory holding stat and meminfo
    },
    "metrics": [],  # Nothing is sampled unless listed
    "outputs": [],  # Snapshots are discarded unless a sink is listed
    # Logging configuration
    "logging": {
        "level": "WARNING",  # DEBUG, INFO, WARNING, ERROR
        "file": None,  # Optional log file in addition to stderr
    },
    # Error reporting (disabled without a DSN)
    "sentry": {
        "dsn": None,
        "environment": "production",
    },
}
