"""Observability module for structured logging, tracing and metrics."""

from paper_search.observability.bootstrap import configure_observability
from paper_search.observability.context import bind_library, get_trace_context, set_trace_context, trace_context
from paper_search.observability.logging import JsonFormatter, configure_logging
from paper_search.observability.metrics import (
    INDEX_BUILD_ERRORS,
    INDEX_BUILD_LATENCY,
    INDEX_CACHE_EVENTS,
    INDEX_DOCUMENT_COUNT,
    SEARCH_LATENCY,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from paper_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_ERRORS",
    "INDEX_BUILD_LATENCY",
    "INDEX_CACHE_EVENTS",
    "INDEX_DOCUMENT_COUNT",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "bind_library",
    "configure_logging",
    "configure_observability",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
