"""
Metric vector types.

This module defines the label-parameterized metric families (Counter, Gauge,
Histogram). Each vector wraps a ``prometheus_client`` metric family which
owns the series storage; the vector validates label cardinality and label
arity and exposes positional mutation operations.

Author: FastAPI Metrics SDK
Version: 1.0.0
"""

import math
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Any

from prometheus_client import Counter, Gauge, Histogram
from prometheus_client.samples import Sample

from .buckets import DEFAULT_LATENCY_BUCKETS
from .exceptions import MetricValidationError, TooManyLabelsError, handle_prometheus_error


MAX_LABELS = 10


class MetricType(Enum):
    """Types of metric vectors supported by the system."""
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


class BaseMetricVector(ABC):
    """Base class for all metric vectors."""

    def __init__(
        self,
        name: str,
        description: str = "",
        label_names: Optional[Sequence[str]] = None
    ):
        label_names = tuple(label_names or ())

        if len(label_names) > MAX_LABELS:
            raise TooManyLabelsError(
                message=f"Metric '{name}' declares {len(label_names)} labels, at most {MAX_LABELS} allowed",
                label_names=label_names,
                max_labels=MAX_LABELS,
                metric_name=name,
                metric_type=self.get_type().value
            )

        self.name = name
        self.description = description
        self.label_names = label_names
        self.created_at = time.time()

        try:
            self._collector = self._build_collector()
        except ValueError as e:
            raise handle_prometheus_error(e, "definition", metric_name=name)

    @abstractmethod
    def _build_collector(self):
        """Build the unregistered prometheus_client metric family."""
        pass

    @abstractmethod
    def get_type(self) -> MetricType:
        """Get the metric type."""
        pass

    @abstractmethod
    def get_value(self, *label_values: str) -> Any:
        """Get the current value of the series selected by ``label_values``."""
        pass

    @property
    def collector(self):
        """The prometheus_client family registered into the backing storage."""
        return self._collector

    def get_metadata(self) -> Dict[str, Any]:
        """Get metric metadata."""
        return {
            'name': self.name,
            'description': self.description,
            'type': self.get_type().value,
            'labels': list(self.label_names),
            'created_at': self.created_at
        }

    def _child(self, label_values: Tuple[str, ...]):
        """Select (creating on first use) the series for ``label_values``."""
        self._validate_label_values(label_values)

        if not self.label_names:
            return self._collector
        return self._collector.labels(*label_values)

    def _validate_label_values(self, label_values: Tuple[str, ...]) -> None:
        if len(label_values) != len(self.label_names):
            raise MetricValidationError(
                message=f"Metric '{self.name}' expects {len(self.label_names)} label values "
                        f"{list(self.label_names)}, got {len(label_values)}",
                validation_rule="label_arity",
                metric_name=self.name,
                metric_type=self.get_type().value
            )

        for label, value in zip(self.label_names, label_values):
            if not isinstance(value, str):
                raise MetricValidationError(
                    message=f"Label value for '{label}' must be a string, got {type(value)}",
                    validation_rule="string_label_values",
                    metric_name=self.name,
                    metric_type=self.get_type().value
                )

    def _label_dict(self, label_values: Tuple[str, ...]) -> Dict[str, str]:
        self._validate_label_values(label_values)
        return dict(zip(self.label_names, label_values))

    def _samples(self, label_values: Tuple[str, ...]) -> List[Sample]:
        """Collect the samples of one series without creating it."""
        labels = self._label_dict(label_values)
        samples = []

        for metric in self._collector.collect():
            for sample in metric.samples:
                series_labels = {k: v for k, v in sample.labels.items() if k != 'le'}
                if series_labels == labels:
                    samples.append(sample)

        return samples

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, labels={list(self.label_names)!r})"


class CounterVector(BaseMetricVector):
    """Counter vector: monotonically non-decreasing per-series accumulator."""

    def _build_collector(self):
        return Counter(self.name, self.description, self.label_names, registry=None)

    def get_type(self) -> MetricType:
        return MetricType.COUNTER

    def inc(self, *label_values: str) -> None:
        """Add 1 to the series selected by ``label_values``."""
        self._child(label_values).inc()

    def add(self, value: float, *label_values: str) -> None:
        """Add ``value`` to the series; counters refuse negative deltas."""
        if value < 0:
            raise MetricValidationError(
                message="Counter increment must be non-negative",
                validation_rule="non_negative_increment",
                metric_name=self.name,
                metric_type=self.get_type().value
            )

        self._child(label_values).inc(value)

    def get_value(self, *label_values: str) -> float:
        """Get the current counter value (0.0 for an unused series)."""
        sample_name = (self.name[:-6] if self.name.endswith('_total') else self.name) + '_total'

        for sample in self._samples(label_values):
            if sample.name == sample_name:
                return sample.value
        return 0.0


class GaugeVector(BaseMetricVector):
    """Gauge vector: arbitrarily settable per-series value."""

    def _build_collector(self):
        return Gauge(self.name, self.description, self.label_names, registry=None)

    def get_type(self) -> MetricType:
        return MetricType.GAUGE

    def set(self, value: float, *label_values: str) -> None:
        """Overwrite the series value."""
        self._child(label_values).set(value)

    def add(self, value: float, *label_values: str) -> None:
        """Add ``value`` (may be negative) to the series value."""
        self._child(label_values).inc(value)

    def get_value(self, *label_values: str) -> float:
        """Get the current gauge value (0.0 for an unused series)."""
        for sample in self._samples(label_values):
            if sample.name == self.name:
                return sample.value
        return 0.0


class HistogramVector(BaseMetricVector):
    """Histogram vector: per-series cumulative distribution over fixed buckets."""

    def __init__(
        self,
        name: str,
        description: str = "",
        label_names: Optional[Sequence[str]] = None,
        buckets: Optional[Sequence[float]] = None
    ):
        self.buckets = self._validate_buckets(name, buckets)
        super().__init__(name, description, label_names)

    @staticmethod
    def _validate_buckets(name: str, buckets: Optional[Sequence[float]]) -> Tuple[float, ...]:
        if buckets is None:
            return DEFAULT_LATENCY_BUCKETS

        bounds = tuple(float(b) for b in buckets)

        if not bounds:
            raise MetricValidationError(
                message=f"Histogram '{name}' needs at least one bucket",
                validation_rule="non_empty_buckets",
                metric_name=name,
                metric_type=MetricType.HISTOGRAM.value
            )

        if any(b <= 0 or math.isnan(b) for b in bounds):
            raise MetricValidationError(
                message=f"Histogram '{name}' bucket bounds must be positive: {list(bounds)}",
                validation_rule="positive_buckets",
                metric_name=name,
                metric_type=MetricType.HISTOGRAM.value
            )

        if list(bounds) != sorted(bounds):
            raise MetricValidationError(
                message=f"Histogram '{name}' bucket bounds must be ascending: {list(bounds)}",
                validation_rule="sorted_buckets",
                metric_name=name,
                metric_type=MetricType.HISTOGRAM.value
            )

        return bounds

    def _build_collector(self):
        return Histogram(
            self.name,
            self.description,
            self.label_names,
            registry=None,
            buckets=self.buckets
        )

    def get_type(self) -> MetricType:
        return MetricType.HISTOGRAM

    def observe(self, value: float, *label_values: str) -> None:
        """Observe ``value``: every bucket with upper bound >= value is incremented."""
        self._child(label_values).observe(value)

    def get_value(self, *label_values: str) -> Dict[str, Any]:
        """Get histogram statistics for one series."""
        count = 0.0
        sum_value = 0.0
        buckets: Dict[float, float] = {}

        for sample in self._samples(label_values):
            if sample.name == self.name + '_bucket':
                buckets[float(sample.labels['le'])] = sample.value
            elif sample.name == self.name + '_count':
                count = sample.value
            elif sample.name == self.name + '_sum':
                sum_value = sample.value

        return {
            'count': count,
            'sum': sum_value,
            'buckets': buckets
        }

    def get_metadata(self) -> Dict[str, Any]:
        metadata = super().get_metadata()
        metadata['buckets'] = list(self.buckets)
        return metadata
