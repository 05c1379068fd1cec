"""
Shared fixtures for metrics tests.
"""

import socket

import httpx
import pytest

from fastapi_metrics_sdk.metrics.registry import MetricRegistry
from fastapi_metrics_sdk.metrics.server import stop_exporter


@pytest.fixture
def registry():
    """Create a registry with private backing storage."""
    return MetricRegistry()


@pytest.fixture
def http_client():
    """HTTP client that ignores proxy settings from the environment."""
    with httpx.Client(trust_env=False, timeout=5.0) as client:
        yield client


@pytest.fixture
def process_exporter():
    """Stop the process-wide exporter after the test."""
    yield
    stop_exporter()


@pytest.fixture
def occupied_port():
    """A localhost port held by a listening socket for the duration of the test."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()
