"""Process-wide observability setup driven by :class:`~paper_search.config.Settings`."""

from __future__ import annotations

from typing import TYPE_CHECKING

from paper_search.observability.logging import configure_logging
from paper_search.observability.metrics import init_metrics
from paper_search.observability.tracing import init_tracing


if TYPE_CHECKING:
    from paper_search.config import Settings


def configure_observability(
    settings: Settings,
    service_name: str = "paper-search",
    resource_attributes: dict[str, str] | None = None,
) -> None:
    """Initialize process-wide observability for the host.

    Call once at startup. The service never reconfigures the root logger on
    its own.

    Args:
        settings: Runtime settings; ``log_level`` and ``log_json`` drive the root logger
        service_name: ``service.name`` resource attribute for metrics and traces
        resource_attributes: Extra OpenTelemetry resource attributes
    """
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_metrics(service_name=service_name, resource_attributes=resource_attributes)
    init_tracing(service_name=service_name, resource_attributes=resource_attributes)
