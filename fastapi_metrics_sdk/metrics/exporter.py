"""
Prometheus metrics exporter.

This module turns the registry's backing storage into the text exposition
format and builds the FastAPI endpoint that serves it. Serialization is
delegated to ``prometheus_client`` so the output stays byte-compatible with
existing scrapers.

Author: FastAPI Metrics SDK
Version: 1.0.0
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.exposition import choose_encoder

from .registry import MetricRegistry, get_global_registry
from .exceptions import HandlerBuildError, MetricsExportError


MetricsEndpoint = Callable[[Request], Awaitable[Response]]


class PrometheusExporter:
    """Exporter for the Prometheus text exposition format."""

    def __init__(self, registry: Optional[MetricRegistry] = None):
        self.registry = registry or get_global_registry()
        self.logger = logging.getLogger("metrics.exporter")

        # Export statistics
        self.exports_total = 0
        self.export_errors = 0
        self.last_export_time = 0.0
        self.export_duration_seconds = 0.0

    def export_metrics(self) -> str:
        """Export every registered series in the text exposition format."""
        output = self._encode(generate_latest)
        return output.decode('utf-8')

    def build_handler(self) -> MetricsEndpoint:
        """
        Build the FastAPI endpoint serving the exposition.

        The endpoint negotiates the format from the ``Accept`` header
        (plain text by default, OpenMetrics on request).

        Raises:
            HandlerBuildError: the registry has no usable backing storage
        """
        collector_registry = getattr(self.registry, 'collector_registry', None)
        if not isinstance(collector_registry, CollectorRegistry):
            raise HandlerBuildError(
                message=f"Cannot build metrics handler: registry {self.registry!r} has no collector registry"
            )

        async def metrics_endpoint(request: Request) -> Response:
            encoder, content_type = choose_encoder(request.headers.get('accept', ''))

            try:
                output = self._encode(encoder)
            except MetricsExportError as e:
                self.logger.error(f"Failed to export metrics: {e}")
                return Response(
                    content="# Failed to export metrics\n",
                    status_code=500,
                    media_type="text/plain"
                )

            return Response(content=output, media_type=content_type)

        return metrics_endpoint

    def _encode(self, encoder: Callable[[CollectorRegistry], bytes]) -> bytes:
        start_time = time.time()

        try:
            output = encoder(self.registry.collector_registry)
        except Exception as e:
            self.export_errors += 1
            raise MetricsExportError(
                message=f"Failed to export metrics: {str(e)}",
                export_destination="prometheus",
                export_format="text",
                original_error=e
            )

        # Update statistics
        self.export_duration_seconds = time.time() - start_time
        self.last_export_time = time.time()
        self.exports_total += 1

        return output

    def get_export_statistics(self) -> Dict[str, Any]:
        """Get export statistics."""
        return {
            'exports_total': self.exports_total,
            'export_errors': self.export_errors,
            'error_rate': self.export_errors / max(1, self.exports_total),
            'last_export_time': self.last_export_time,
            'export_duration_seconds': self.export_duration_seconds
        }


def create_prometheus_exporter(registry: Optional[MetricRegistry] = None) -> PrometheusExporter:
    """Create a Prometheus exporter."""
    return PrometheusExporter(registry)
