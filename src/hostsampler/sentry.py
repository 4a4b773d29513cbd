"""Sentry SDK integration for hostsampler.

Error reporting is opt-in: nothing is initialised, and nothing is sent,
unless a DSN is configured (``sentry.dsn`` in the config file or the
HOSTSAMPLER_SENTRY_DSN environment variable). Until then the capture
helpers below are no-ops, since sentry_sdk ignores events without a client.

Usage:
    from hostsampler.sentry import init_sentry, capture_collector_error

    init_sentry(dsn="https://...")
    capture_collector_error("hostsampler-worker", error)
"""

from __future__ import annotations

import logging
import os
import platform
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from hostsampler import __version__

SENTRY_DSN_ENV = "HOSTSAMPLER_SENTRY_DSN"

logger = logging.getLogger(__name__)


def resolve_dsn(configured: str | None = None) -> str | None:
    """Return the configured DSN, falling back to the environment."""
    return configured or os.environ.get(SENTRY_DSN_ENV) or None


def init_sentry(
    *,
    dsn: str | None = None,
    environment: str = "production",
    event_level: int = logging.ERROR,
) -> bool:
    """Initialize Sentry SDK with hostsampler-specific configuration.

    Configures Sentry with:
    - LoggingIntegration: INFO+ as breadcrumbs, event_level+ as events
    - Default tags for filtering

    Args:
        dsn: Sentry DSN (HOSTSAMPLER_SENTRY_DSN if not provided)
        environment: Environment name reported with events
        event_level: Minimum log level that creates a Sentry event

    Returns:
        True if Sentry was initialised
    """
    dsn = resolve_dsn(dsn)
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        release=f"hostsampler@{__version__}",
        environment=environment,
        send_default_pii=False,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=event_level),
        ],
        before_send=_before_send,
    )

    sentry_sdk.set_tag("python.version", platform.python_version())
    sentry_sdk.set_tag("os.version", platform.release())
    sentry_sdk.set_tag("arch", platform.machine())

    logger.debug("Sentry error reporting enabled (environment=%s)", environment)
    return True


def _before_send(
    event: dict[str, Any],
    hint: dict[str, Any],
) -> dict[str, Any] | None:
    """Drop KeyboardInterrupt events, pass everything else through."""
    if "exc_info" in hint:
        exc_type, _, _ = hint["exc_info"]
        if exc_type is KeyboardInterrupt:
            return None
    return event


def capture_collector_error(
    collector_name: str,
    error: Exception,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Capture an error from the sampling loop with context.

    Args:
        collector_name: Name of the worker or collector that failed
        error: The exception that occurred
        extra: Additional context to include
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("collector", collector_name)
        scope.set_context("collector_error", {
            "collector": collector_name,
            "error_type": type(error).__name__,
            **(extra or {}),
        })
        sentry_sdk.capture_exception(error)


def add_breadcrumb(
    message: str,
    category: str = "hostsampler",
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """Add a breadcrumb for debugging.

    Args:
        message: Description of the event
        category: Category for grouping (e.g., "sink", "config")
        level: Severity level (debug, info, warning, error)
        data: Additional data to attach
    """
    sentry_sdk.add_breadcrumb(
        message=message,
        category=category,
        level=level,
        data=data,
    )
