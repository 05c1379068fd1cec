# fastapi-metrics-sdk/fastapi_metrics_sdk/__init__.py
"""
FastAPI Metrics SDK

In-process metrics instrumentation with a Prometheus-compatible exporter.

Example usage:
    from fastapi_metrics_sdk import new_counter_vector, start_exporter

    requests_total = new_counter_vector(
        "requests_total", "Handled requests", ["method"]
    )
    requests_total.inc("GET")

    handle = start_exporter("/metric", 18089)
"""

from .version import __version__
from .config import MetricsSettings, get_settings
from .exceptions import SDKError
from .metrics import (
    DEFAULT_LATENCY_BUCKETS,
    MAX_LABELS,
    since_ms,
    CounterVector,
    GaugeVector,
    HistogramVector,
    MetricType,
    MetricRegistry,
    get_global_registry,
    new_counter_vector,
    new_gauge_vector,
    new_histogram_vector,
    PrometheusExporter,
    ExporterServer,
    ExporterHandle,
    ExporterState,
    start_exporter,
    stop_exporter,
    initialize_metrics,
    MetricsError,
    MetricValidationError,
    TooManyLabelsError,
    MetricCollisionError,
    HandlerBuildError,
    ListenError
)

# Package metadata
__title__ = "fastapi-metrics-sdk"
__license__ = "MIT"

# Version info tuple for programmatic access
VERSION_INFO = tuple(int(part) for part in __version__.split('.'))

__all__ = [
    # Version
    "__version__",
    "VERSION_INFO",

    # Configuration
    "MetricsSettings",
    "get_settings",

    # Metric vectors
    "DEFAULT_LATENCY_BUCKETS",
    "MAX_LABELS",
    "since_ms",
    "CounterVector",
    "GaugeVector",
    "HistogramVector",
    "MetricType",
    "MetricRegistry",
    "get_global_registry",
    "new_counter_vector",
    "new_gauge_vector",
    "new_histogram_vector",

    # Exporter
    "PrometheusExporter",
    "ExporterServer",
    "ExporterHandle",
    "ExporterState",
    "start_exporter",
    "stop_exporter",
    "initialize_metrics",

    # Exceptions
    "SDKError",
    "MetricsError",
    "MetricValidationError",
    "TooManyLabelsError",
    "MetricCollisionError",
    "HandlerBuildError",
    "ListenError",
]
