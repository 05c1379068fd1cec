"""
Unit tests for the Prometheus exporter and its FastAPI endpoint.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from fastapi_metrics_sdk.metrics.debug import attach_route, create_private_app
from fastapi_metrics_sdk.metrics.exporter import PrometheusExporter, create_prometheus_exporter
from fastapi_metrics_sdk.metrics.exceptions import HandlerBuildError


@pytest.fixture
def requests_total(registry):
    counter = registry.counter_vector("requests_total", "Handled requests", ["method"])
    for _ in range(3):
        counter.inc("GET")
    counter.inc("POST")
    return counter


@pytest.fixture
def client(registry):
    app = create_private_app()
    attach_route(app, "/metric", PrometheusExporter(registry).build_handler())
    return TestClient(app)


class TestExportMetrics:
    """Test text exposition rendering."""

    def test_counter_series(self, registry, requests_total):
        output = PrometheusExporter(registry).export_metrics()

        assert "# HELP requests_total Handled requests" in output
        assert "# TYPE requests_total counter" in output
        assert 'requests_total{method="GET"} 3.0' in output
        assert 'requests_total{method="POST"} 1.0' in output

    def test_gauge_series(self, registry):
        gauge = registry.gauge_vector("queue_depth", "Queue depth", ["queue"])
        gauge.set(-2, "emails")

        output = PrometheusExporter(registry).export_metrics()

        assert "# TYPE queue_depth gauge" in output
        assert 'queue_depth{queue="emails"} -2.0' in output

    def test_histogram_series(self, registry):
        histogram = registry.histogram_vector("latency_ms", "Latency", ["route"])
        histogram.observe(7, "/a")

        output = PrometheusExporter(registry).export_metrics()

        assert 'latency_ms_bucket{le="6.0",route="/a"} 0.0' in output
        assert 'latency_ms_bucket{le="8.0",route="/a"} 1.0' in output
        assert 'latency_ms_bucket{le="+Inf",route="/a"} 1.0' in output
        assert 'latency_ms_count{route="/a"} 1.0' in output
        assert 'latency_ms_sum{route="/a"} 7.0' in output

    def test_statistics(self, registry):
        exporter = create_prometheus_exporter(registry)
        exporter.export_metrics()
        exporter.export_metrics()

        stats = exporter.get_export_statistics()

        assert stats['exports_total'] == 2
        assert stats['export_errors'] == 0


class TestMetricsEndpoint:
    """Test the FastAPI exposition endpoint."""

    def test_get_exposition(self, client, requests_total):
        response = client.get("/metric")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'requests_total{method="GET"} 3.0' in response.text
        assert 'requests_total{method="POST"} 1.0' in response.text

    def test_unknown_path(self, client):
        assert client.get("/metrics").status_code == 404
        assert client.get("/").status_code == 404

    def test_reflects_later_mutations(self, client, requests_total):
        requests_total.inc("DELETE")

        assert 'requests_total{method="DELETE"} 1.0' in client.get("/metric").text

    def test_openmetrics_negotiation(self, client, requests_total):
        response = client.get("/metric", headers={"Accept": "application/openmetrics-text"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/openmetrics-text")
        assert response.text.endswith("# EOF\n")

    def test_export_failure_returns_500(self, registry, requests_total):
        class FailingCollector:
            def describe(self):
                return []

            def collect(self):
                raise RuntimeError("collector exploded")

        registry.collector_registry.register(FailingCollector())
        exporter = PrometheusExporter(registry)
        app = create_private_app()
        attach_route(app, "/metric", exporter.build_handler())

        response = TestClient(app).get("/metric")

        assert response.status_code == 500
        assert "requests_total" not in response.text
        assert exporter.get_export_statistics()['export_errors'] == 1
        assert exporter.get_export_statistics()['exports_total'] == 0


class TestBuildHandler:
    """Test handler construction failures."""

    def test_registry_without_storage(self):
        exporter = PrometheusExporter(SimpleNamespace(collector_registry=None))

        with pytest.raises(HandlerBuildError):
            exporter.build_handler()
