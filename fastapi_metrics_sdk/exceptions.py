# fastapi-metrics-sdk/fastapi_metrics_sdk/exceptions.py
"""
Exception classes for FastAPI Metrics SDK.

This module defines the root of the SDK exception hierarchy. Metrics
specific errors live in ``fastapi_metrics_sdk.metrics.exceptions``.
"""

from typing import Optional, Dict, Any


class SDKError(Exception):
    """Base exception for all SDK errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

