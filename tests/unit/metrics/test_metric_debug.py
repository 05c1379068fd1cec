"""
Unit tests for the debug application and route attachment.
"""

import inspect
import os

from fastapi.testclient import TestClient

from fastapi_metrics_sdk.metrics.debug import (
    attach_route,
    create_private_app,
    dump_threads,
    gc_statistics,
    get_default_app,
    process_statistics
)


class TestDebugIntrospection:
    """Test the introspection helpers."""

    def test_dump_threads_includes_main_thread(self):
        assert "Thread MainThread" in dump_threads()

    def test_gc_statistics(self):
        stats = gc_statistics()

        assert len(stats['count']) == 3
        assert 'objects' not in stats

    def test_process_statistics(self):
        stats = process_statistics()

        assert stats['pid'] == os.getpid()
        assert stats['memory_rss_bytes'] > 0
        assert stats['threads'] >= 1


class TestDefaultApp:
    """Test the process-wide debug application."""

    def test_singleton(self):
        assert get_default_app() is get_default_app()

    def test_debug_routes(self):
        client = TestClient(get_default_app())

        threads = client.get("/debug/threads")
        assert threads.status_code == 200
        assert "Thread" in threads.text

        assert "threshold" in client.get("/debug/gc").json()
        assert client.get("/debug/process").json()['pid'] == os.getpid()

    def test_debug_endpoints_run_in_threadpool(self):
        debug_routes = [
            route for route in get_default_app().router.routes
            if getattr(route, "path", "").startswith("/debug/")
        ]

        assert len(debug_routes) == 3
        assert not any(inspect.iscoroutinefunction(route.endpoint) for route in debug_routes)

    def test_private_app_has_no_debug_routes(self):
        client = TestClient(create_private_app())

        assert client.get("/debug/threads").status_code == 404


class TestAttachRoute:
    """Test route attachment."""

    def test_attach(self):
        app = create_private_app()

        async def ping():
            return {"pong": True}

        attach_route(app, "/ping", ping)

        assert TestClient(app).get("/ping").json() == {"pong": True}

    def test_last_attachment_wins(self, caplog):
        app = create_private_app()

        async def first():
            return {"handler": "first"}

        async def second():
            return {"handler": "second"}

        attach_route(app, "/status", first)
        attach_route(app, "/status", second)

        assert TestClient(app).get("/status").json() == {"handler": "second"}
        assert "Replacing existing route at /status" in caplog.text

    def test_replacement_leaves_previous_route_table_intact(self):
        app = create_private_app()

        async def first():
            return {"handler": "first"}

        async def second():
            return {"handler": "second"}

        attach_route(app, "/scrape", first)
        previous_routes = app.router.routes
        previous_snapshot = list(previous_routes)

        attach_route(app, "/scrape", second)

        assert app.router.routes is not previous_routes
        assert all(route in previous_routes for route in previous_snapshot)
        assert len([r for r in app.router.routes if getattr(r, "path", None) == "/scrape"]) == 1

    def test_reattaching_same_endpoint_keeps_one_route(self):
        app = create_private_app()

        async def ping():
            return {"pong": True}

        attach_route(app, "/ping", ping)
        attach_route(app, "/ping", ping)

        assert len([r for r in app.router.routes if getattr(r, "path", None) == "/ping"]) == 1
        assert TestClient(app).get("/ping").json() == {"pong": True}
