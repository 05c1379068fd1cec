"""
End-to-end tests: instrument, start the exporter, scrape over HTTP.
"""

import socket
import time

import pytest

from fastapi_metrics_sdk import (
    DEFAULT_LATENCY_BUCKETS,
    MetricCollisionError,
    TooManyLabelsError,
    new_counter_vector,
    new_gauge_vector,
    new_histogram_vector,
    since_ms,
    start_exporter
)
from fastapi_metrics_sdk.config import DEFAULT_METRIC_PORT


def _port_is_free(port):
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind(("127.0.0.1", port))
        return True
    except OSError:
        return False
    finally:
        sock.close()


class TestScrapeWorkflow:
    """Test a service instrumenting itself and being scraped."""

    def test_request_counter_on_default_port(self, registry, process_exporter, http_client):
        if not _port_is_free(DEFAULT_METRIC_PORT):
            pytest.skip(f"port {DEFAULT_METRIC_PORT} is in use")

        requests_total = new_counter_vector(
            "requests_total", "Handled requests", ["method"], registry=registry
        )
        for _ in range(3):
            requests_total.inc("GET")
        requests_total.inc("POST")

        handle = start_exporter("/metric", DEFAULT_METRIC_PORT, registry=registry, listen_host="127.0.0.1")
        assert handle.wait_until_listening(timeout=10)

        base = f"http://127.0.0.1:{DEFAULT_METRIC_PORT}"
        response = http_client.get(f"{base}/metric")

        assert response.status_code == 200
        assert 'requests_total{method="GET"} 3.0' in response.text
        assert 'requests_total{method="POST"} 1.0' in response.text
        assert http_client.get(f"{base}/other").status_code == 404

    def test_latency_histogram(self, registry, process_exporter, http_client):
        latency = new_histogram_vector("handler_latency_ms", "Handler latency", ["handler"], registry=registry)
        in_flight = new_gauge_vector("handlers_in_flight", "Handlers in flight", ["handler"], registry=registry)

        in_flight.add(1, "checkout")
        start = time.time()
        latency.observe(since_ms(start), "checkout")
        latency.observe(7, "checkout")
        in_flight.add(-1, "checkout")

        handle = start_exporter("/metric", 0, registry=registry, listen_host="127.0.0.1")
        assert handle.wait_until_listening(timeout=10)

        text = http_client.get(f"http://127.0.0.1:{handle.port}/metric").text

        assert 'handler_latency_ms_count{handler="checkout"} 2.0' in text
        assert 'handler_latency_ms_bucket{handler="checkout",le="8.0"} 2.0' in text
        assert 'handlers_in_flight{handler="checkout"} 0.0' in text
        assert text.count('handler_latency_ms_bucket{handler="checkout"') == len(DEFAULT_LATENCY_BUCKETS) + 1

    def test_definition_errors_leave_exporter_consistent(self, registry, process_exporter, http_client):
        queue_depth = new_gauge_vector("queue_depth", "Queue depth", ["queue"], registry=registry)

        with pytest.raises(MetricCollisionError):
            new_gauge_vector("queue_depth", "Queue depth", ["queue"], registry=registry)
        with pytest.raises(TooManyLabelsError):
            new_counter_vector("wide_total", "Wide", [f"l{i}" for i in range(11)], registry=registry)

        queue_depth.set(5, "emails")

        handle = start_exporter("/metric", 0, registry=registry, listen_host="127.0.0.1")
        assert handle.wait_until_listening(timeout=10)

        text = http_client.get(f"http://127.0.0.1:{handle.port}/metric").text

        assert 'queue_depth{queue="emails"} 5.0' in text
        assert text.count("# TYPE queue_depth gauge") == 1
        assert "wide_total" not in text
