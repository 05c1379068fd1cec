"""
Metrics-specific exceptions.

This module defines custom exceptions for metrics operations,
providing detailed error information for debugging and monitoring.

Author: FastAPI Metrics SDK
Version: 1.0.0
"""

from typing import Optional, Dict, Any, Sequence

from ..exceptions import SDKError


class MetricsError(SDKError):
    """Base exception for metrics-related errors."""

    def __init__(
        self,
        message: str,
        metric_name: Optional[str] = None,
        metric_type: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.metric_name = metric_name
        self.metric_type = metric_type
        self.labels = labels or {}
        self.operation = operation
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': type(self).__name__,
            'message': self.message,
            'operation': self.operation,
            'metric_name': self.metric_name,
            'metric_type': self.metric_type,
            'labels': self.labels,
            'original_error': str(self.original_error) if self.original_error else None,
            'details': self.details
        }


class MetricValidationError(MetricsError):
    """Exception raised when a metric definition or mutation argument is invalid."""

    def __init__(
        self,
        message: str,
        validation_rule: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('operation', 'validate')
        super().__init__(message, **kwargs)
        self.validation_rule = validation_rule


class TooManyLabelsError(MetricValidationError):
    """Exception raised when a vector declares more label names than allowed."""

    def __init__(
        self,
        message: str,
        label_names: Optional[Sequence[str]] = None,
        max_labels: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, validation_rule="max_labels", **kwargs)
        self.label_names = tuple(label_names or ())
        self.max_labels = max_labels


class MetricRegistrationError(MetricsError):
    """Exception raised during metric registration."""

    def __init__(
        self,
        message: str,
        registration_type: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('operation', 'register')
        super().__init__(message, **kwargs)
        self.registration_type = registration_type


class MetricCollisionError(MetricRegistrationError):
    """Exception raised when metric names collide."""

    def __init__(
        self,
        message: str,
        existing_metric: Optional[str] = None,
        conflicting_metric: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, registration_type="collision", **kwargs)
        self.existing_metric = existing_metric
        self.conflicting_metric = conflicting_metric


class MetricsExportError(MetricsError):
    """Exception raised during metrics export."""

    def __init__(
        self,
        message: str,
        export_destination: Optional[str] = None,
        export_format: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('operation', 'export')
        super().__init__(message, **kwargs)
        self.export_destination = export_destination
        self.export_format = export_format


class HandlerBuildError(MetricsExportError):
    """Exception raised when the exposition handler cannot be constructed."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, export_destination=path, **kwargs)
        self.path = path


class ListenError(MetricsExportError):
    """Exception recorded when the exporter listener terminates."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        path: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('operation', 'listen')
        super().__init__(message, export_destination=f"{host}:{port}{path or ''}", **kwargs)
        self.host = host
        self.port = port
        self.path = path


# Utility functions for error handling

def handle_prometheus_error(
    error: Exception,
    operation: str,
    metric_name: Optional[str] = None
) -> MetricValidationError:
    """Convert prometheus_client errors to our exception format."""
    return MetricValidationError(
        message=f"Prometheus {operation} failed: {str(error)}",
        validation_rule=operation,
        metric_name=metric_name,
        original_error=error
    )
