"""
Metrics instrumentation and exposition for FastAPI Metrics SDK.

This module provides label-parameterized metric vectors (counters, gauges,
histograms), a registry with duplicate-name protection and an exporter
server exposing the registered series in the Prometheus text format.

Author: FastAPI Metrics SDK
Version: 1.0.0
"""

from .buckets import (
    DEFAULT_LATENCY_BUCKETS,
    since_ms
)
from .types import (
    MAX_LABELS,
    BaseMetricVector,
    CounterVector,
    GaugeVector,
    HistogramVector,
    MetricType
)
from .registry import (
    MetricRegistry,
    MetricInfo,
    get_global_registry,
    set_global_registry,
    create_registry,
    new_counter_vector,
    new_gauge_vector,
    new_histogram_vector
)
from .exporter import (
    PrometheusExporter,
    create_prometheus_exporter
)
from .debug import (
    get_default_app,
    attach_route
)
from .server import (
    ExporterServer,
    ExporterHandle,
    ExporterState,
    start_exporter,
    stop_exporter,
    get_active_exporter,
    initialize_metrics
)
from .exceptions import (
    MetricsError,
    MetricValidationError,
    TooManyLabelsError,
    MetricRegistrationError,
    MetricCollisionError,
    MetricsExportError,
    HandlerBuildError,
    ListenError
)

__all__ = [
    # Buckets
    'DEFAULT_LATENCY_BUCKETS',
    'since_ms',

    # Metric types
    'MAX_LABELS',
    'BaseMetricVector',
    'CounterVector',
    'GaugeVector',
    'HistogramVector',
    'MetricType',

    # Registry
    'MetricRegistry',
    'MetricInfo',
    'get_global_registry',
    'set_global_registry',
    'create_registry',
    'new_counter_vector',
    'new_gauge_vector',
    'new_histogram_vector',

    # Exporters
    'PrometheusExporter',
    'create_prometheus_exporter',

    # Debug application
    'get_default_app',
    'attach_route',

    # Server
    'ExporterServer',
    'ExporterHandle',
    'ExporterState',
    'start_exporter',
    'stop_exporter',
    'get_active_exporter',
    'initialize_metrics',

    # Exceptions
    'MetricsError',
    'MetricValidationError',
    'TooManyLabelsError',
    'MetricRegistrationError',
    'MetricCollisionError',
    'MetricsExportError',
    'HandlerBuildError',
    'ListenError',
]
