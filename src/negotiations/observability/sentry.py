"""Optional error reporting to Sentry for the negotiations API.

Sentry is off unless ``SENTRY_DSN`` is set.  When it is on, errors reach
Sentry only through structlog (``get_sentry_processor``); the SDK's own
stdlib-logging hook is disabled so nothing is reported twice.
"""

from __future__ import annotations

import logging

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor


def init_sentry(dsn: str, environment: str = "development") -> bool:
    """Start the Sentry SDK for this process, if a DSN is configured.

    Args:
        dsn: Project DSN; empty leaves Sentry disabled.
        environment: ``production`` or ``development``, shown on each event.

    Returns:
        Whether Sentry is active, so logging can add the Sentry processor.
    """
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=0.1,
        # Client emails and tokens must not leave the service.
        send_default_pii=False,
        integrations=[LoggingIntegration(event_level=None, level=None)],
    )
    return True


def get_sentry_processor() -> structlog.types.Processor:
    """Processor that turns ``logger.error(...)`` events into Sentry issues."""
    return SentryProcessor(event_level=logging.ERROR)
