"""Command-line interface for hostsampler.

This module provides:
- Typer-based CLI application
- Config file loading with CLI overrides
- Logging and error reporting setup
- Foreground control of the background sampler (start, wait, stop)

Usage:
    hostsampler CONFIG_PATH                  # Sample until Enter is pressed
    hostsampler CONFIG_PATH --duration 60    # Sample for one minute
    hostsampler CONFIG_PATH --check          # Validate the config and exit

Exit codes:
    0  Normal exit
    1  Configuration could not be loaded, no config path was given,
       or the log file could not be opened
"""

from __future__ import annotations

from pathlib import Path
import sys
import time
from typing import Annotated, Any

from rich.console import Console
from rich.text import Text
import typer

from hostsampler import __version__
from hostsampler.config import Config, ConfigError, load_config
from hostsampler.logging_config import configure_logging
from hostsampler.monitor import SystemMonitor
from hostsampler.sentry import init_sentry

app = typer.Typer(
    name="hostsampler",
    help="Periodic host metrics sampler (CPU and memory from /proc)",
    no_args_is_help=False,
    add_completion=False,
    rich_markup_mode="rich",
)

# Messages go to stderr; stdout belongs to the console sink
console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        console.print(f"hostsampler version {__version__}")
        raise typer.Exit()


def build_overrides(period: int | None = None, proc_root: Path | None = None) -> dict[str, Any]:
    """Build config override dict from CLI flags.

    Args:
        period: Sampling period override in seconds
        proc_root: Directory to read stat/meminfo from

    Returns:
        Dictionary of config overrides
    """
    settings: dict[str, Any] = {}
    if period is not None:
        settings["period"] = period
    if proc_root is not None:
        settings["proc_root"] = str(proc_root)
    return {"settings": settings} if settings else {}


def describe_config(config: Config) -> list[str]:
    """Summarize a configuration as printable lines."""
    cores = config.cpu_core_ids()
    specs = config.memory_specs()
    lines = [f"period: {config.period}s"]
    if cores is not None:
        lines.append(f"cpu: total{''.join(f', core {c}' for c in cores)}")
    if specs is not None:
        lines.append(f"memory: {', '.join(specs) if specs else '(no specs)'}")
    for output in config.outputs:
        path = getattr(output, "path", None)
        lines.append(f"output: {output.type}{f' -> {path}' if path else ''}")
    return lines


def wait_for_stop(duration: float | None) -> None:
    """Block the controlling thread until the user asks to stop.

    Args:
        duration: Seconds to run, or None to wait for Enter (or EOF)
    """
    try:
        if duration is not None:
            time.sleep(duration)
        else:
            sys.stdin.readline()
    except KeyboardInterrupt:
        pass


ConfigArgument = Annotated[
    Path | None,
    typer.Argument(
        help="Path to the YAML or JSON config file (default: $HOSTSAMPLER_CONFIG)",
        show_default=False,
    ),
]

PeriodOption = Annotated[
    int | None,
    typer.Option(
        "--period",
        "-p",
        help="Override settings.period (seconds between samples)",
        min=1,
    ),
]

ProcRootOption = Annotated[
    Path | None,
    typer.Option(
        "--proc-root",
        help="Read stat and meminfo from this directory instead of /proc",
    ),
]

DurationOption = Annotated[
    float | None,
    typer.Option(
        "--duration",
        "-d",
        help="Stop after this many seconds instead of waiting for Enter",
        min=0,
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
]

CheckOption = Annotated[
    bool,
    typer.Option(
        "--check",
        help="Validate the configuration and exit",
    ),
]

VersionOption = Annotated[
    bool | None,
    typer.Option(
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
]


@app.command()
def main(
    config_path: ConfigArgument = None,
    period: PeriodOption = None,
    proc_root: ProcRootOption = None,
    duration: DurationOption = None,
    log_level: LogLevelOption = None,
    check: CheckOption = False,
    version: VersionOption = None,
) -> None:
    """Sample CPU and memory counters and write them to the configured outputs.

    Sampling runs on a background thread until Enter is pressed
    (or --duration elapses).
    """
    if log_level is not None and log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        console.print(f"[red]Error:[/red] Invalid log level: {log_level}")
        raise typer.Exit(1)

    try:
        cfg = load_config(
            str(config_path) if config_path else None,
            overrides=build_overrides(period, proc_root),
        )
    except ConfigError as e:
        console.print(Text(str(e), style="red"))
        raise typer.Exit(1) from e

    try:
        configure_logging(cfg.logging, level=log_level)
    except OSError as e:
        message = f"Cannot open log file {cfg.logging.file}: {e.strerror or e}"
        console.print(Text(message, style="red"))
        raise typer.Exit(1) from e
    init_sentry(dsn=cfg.sentry.dsn, environment=cfg.sentry.environment)

    if check:
        console.print("[green]Configuration OK[/green]")
        for line in describe_config(cfg):
            console.print(f"  {line}", highlight=False)
        raise typer.Exit(0)

    monitor = SystemMonitor(cfg)
    monitor.start()
    if duration is None:
        console.print("Monitoring started. Press Enter to stop...")
    try:
        wait_for_stop(duration)
    finally:
        monitor.stop()
    console.print("Monitoring stopped.")


def cli_main() -> None:
    """Entry point for the CLI application."""
    app()
