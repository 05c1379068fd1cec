"""
Metrics registry with collision detection.

This module provides the registration guard: a registry keyed by metric
name that rejects duplicate registrations and owns the backing
``prometheus_client.CollectorRegistry`` the exposition handler reads from.

Author: FastAPI Metrics SDK
Version: 1.0.0
"""

import logging
import threading
from typing import Dict, List, Optional, Any, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from prometheus_client import REGISTRY, CollectorRegistry

from .types import (
    BaseMetricVector,
    CounterVector,
    GaugeVector,
    HistogramVector,
    MetricType
)
from .exceptions import MetricCollisionError


@dataclass
class MetricInfo:
    """Information about a registered metric."""
    name: str
    metric_type: MetricType
    description: str
    labels: List[str]
    instance: BaseMetricVector
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MetricRegistry:
    """Registry for metric vectors with duplicate-name protection."""

    def __init__(self, collector_registry: Optional[CollectorRegistry] = None):
        self._metrics: Dict[str, MetricInfo] = {}
        self._lock = threading.RLock()
        self._collector_registry = collector_registry or CollectorRegistry(auto_describe=True)
        self.logger = logging.getLogger("metrics.registry")

        # Statistics
        self._registration_count = 0
        self._collision_count = 0

    @property
    def collector_registry(self) -> CollectorRegistry:
        """Backing sample storage serialized by the exporter."""
        return self._collector_registry

    def register(self, metric: BaseMetricVector) -> BaseMetricVector:
        """
        Register a metric vector.

        The name check and the insertion happen under one lock, so of two
        concurrent registrations of the same name exactly one succeeds.

        Raises:
            MetricCollisionError: the name is taken, or its series names clash
                with a family already in the backing storage
        """
        with self._lock:
            if metric.name in self._metrics:
                existing_metric = self._metrics[metric.name]
                self._collision_count += 1
                raise MetricCollisionError(
                    message=f"Metric '{metric.name}' already registered",
                    existing_metric=existing_metric.name,
                    conflicting_metric=metric.name,
                    metric_name=metric.name,
                    metric_type=metric.get_type().value
                )

            try:
                self._collector_registry.register(metric.collector)
            except ValueError as e:
                self._collision_count += 1
                raise MetricCollisionError(
                    message=f"Metric '{metric.name}' collides with a registered collector: {e}",
                    conflicting_metric=metric.name,
                    metric_name=metric.name,
                    metric_type=metric.get_type().value,
                    original_error=e
                )

            self._metrics[metric.name] = MetricInfo(
                name=metric.name,
                metric_type=metric.get_type(),
                description=metric.description,
                labels=list(metric.label_names),
                instance=metric
            )
            self._registration_count += 1

        self.logger.debug(f"Registered {metric.get_type().value} metric '{metric.name}'")
        return metric

    def lookup(self, name: str) -> Optional[BaseMetricVector]:
        """Get a registered metric vector by name."""
        with self._lock:
            metric_info = self._metrics.get(name)
            return metric_info.instance if metric_info else None

    def get_info(self, name: str) -> Optional[MetricInfo]:
        """Get metric information by name."""
        with self._lock:
            return self._metrics.get(name)

    def exists(self, name: str) -> bool:
        """Check if a metric exists in the registry."""
        with self._lock:
            return name in self._metrics

    def list_metrics(self) -> List[str]:
        """List all registered metric names."""
        with self._lock:
            return list(self._metrics.keys())

    def list_by_type(self, metric_type: MetricType) -> List[str]:
        """List metrics by type."""
        with self._lock:
            return [
                name for name, info in self._metrics.items()
                if info.metric_type == metric_type
            ]

    def get_statistics(self) -> Dict[str, Any]:
        """Get registry statistics."""
        with self._lock:
            counts: Dict[str, int] = {}
            for info in self._metrics.values():
                counts[info.metric_type.value] = counts.get(info.metric_type.value, 0) + 1

            return {
                'total_metrics': len(self._metrics),
                'registration_count': self._registration_count,
                'collision_count': self._collision_count,
                'metrics_by_type': counts
            }

    # Constructors

    def counter_vector(
        self,
        name: str,
        description: str = "",
        label_names: Optional[Sequence[str]] = None
    ) -> CounterVector:
        """Create and register a counter vector."""
        return self.register(CounterVector(name, description, label_names))

    def gauge_vector(
        self,
        name: str,
        description: str = "",
        label_names: Optional[Sequence[str]] = None
    ) -> GaugeVector:
        """Create and register a gauge vector."""
        return self.register(GaugeVector(name, description, label_names))

    def histogram_vector(
        self,
        name: str,
        description: str = "",
        label_names: Optional[Sequence[str]] = None,
        buckets: Optional[Sequence[float]] = None
    ) -> HistogramVector:
        """Create and register a histogram vector (latency buckets by default)."""
        return self.register(HistogramVector(name, description, label_names, buckets))


# Global registry instance
_global_registry: Optional[MetricRegistry] = None
_registry_lock = threading.Lock()


def get_global_registry() -> MetricRegistry:
    """
    Get the process-default metric registry.

    It is backed by ``prometheus_client.REGISTRY`` so the default process
    and platform collectors are exposed alongside registered vectors.
    """
    global _global_registry

    if _global_registry is None:
        with _registry_lock:
            if _global_registry is None:
                _global_registry = MetricRegistry(REGISTRY)

    return _global_registry


def set_global_registry(registry: MetricRegistry) -> None:
    """Set the process-default metric registry."""
    global _global_registry

    with _registry_lock:
        _global_registry = registry


def create_registry() -> MetricRegistry:
    """Create a new metric registry with private backing storage."""
    return MetricRegistry()


# Convenience functions for metric registration

def new_counter_vector(
    name: str,
    description: str = "",
    label_names: Optional[Sequence[str]] = None,
    registry: Optional[MetricRegistry] = None
) -> CounterVector:
    """Create a counter vector and register it (default registry if none given)."""
    reg = registry or get_global_registry()
    return reg.counter_vector(name, description, label_names)


def new_gauge_vector(
    name: str,
    description: str = "",
    label_names: Optional[Sequence[str]] = None,
    registry: Optional[MetricRegistry] = None
) -> GaugeVector:
    """Create a gauge vector and register it (default registry if none given)."""
    reg = registry or get_global_registry()
    return reg.gauge_vector(name, description, label_names)


def new_histogram_vector(
    name: str,
    description: str = "",
    label_names: Optional[Sequence[str]] = None,
    buckets: Optional[Sequence[float]] = None,
    registry: Optional[MetricRegistry] = None
) -> HistogramVector:
    """Create a histogram vector and register it (default registry if none given)."""
    reg = registry or get_global_registry()
    return reg.histogram_vector(name, description, label_names, buckets)
