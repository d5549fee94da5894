"""Prometheus metrics instrumentation for the negotiation service.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus business counters.
- ``NEGOTIATIONS_CREATED``: Counter of negotiations opened.
- ``NEGOTIATION_TRANSITIONS``: Counter of persisted transitions, labelled by
  the status they led to.

Business metrics are updated by the service after each successful write.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

NEGOTIATIONS_CREATED: Counter = Counter(
    "negotiation_created_total",
    "Total number of negotiations opened",
)

NEGOTIATION_TRANSITIONS: Counter = Counter(
    "negotiation_transitions_total",
    "Total number of persisted negotiation transitions by resulting status",
    ["status"],
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
