"""
Process-wide debug application.

The default application is shared by every subsystem that wants to expose
debugging endpoints on one listener. It carries thread, garbage collector
and process introspection routes; the metrics exporter attaches its
exposition path to it when debug sharing is enabled.
"""

import gc
import logging
import os
import sys
import threading
import traceback
from typing import Any, Callable, Dict, Optional

import psutil
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.routing import Route


logger = logging.getLogger("metrics.debug")

_default_app: Optional[FastAPI] = None
_app_lock = threading.Lock()
_router_lock = threading.Lock()


def dump_threads() -> str:
    """Render the current stack of every live thread."""
    names = {thread.ident: thread.name for thread in threading.enumerate()}
    sections = []

    for ident, frame in sys._current_frames().items():
        header = f"Thread {names.get(ident, 'unknown')} ({ident}):\n"
        sections.append(header + "".join(traceback.format_stack(frame)))

    return "\n".join(sections)


def gc_statistics() -> Dict[str, Any]:
    """Garbage collector counters and per-generation statistics."""
    return {
        'enabled': gc.isenabled(),
        'count': list(gc.get_count()),
        'threshold': list(gc.get_threshold()),
        'stats': gc.get_stats()
    }


def process_statistics() -> Dict[str, Any]:
    """Memory, CPU and resource usage of the current process."""
    process = psutil.Process(os.getpid())

    with process.oneshot():
        memory = process.memory_info()
        cpu = process.cpu_times()
        stats = {
            'pid': process.pid,
            'memory_rss_bytes': memory.rss,
            'memory_vms_bytes': memory.vms,
            'cpu_user_seconds': cpu.user,
            'cpu_system_seconds': cpu.system,
            'threads': process.num_threads(),
        }

        # num_fds is POSIX only
        if hasattr(process, 'num_fds'):
            stats['open_fds'] = process.num_fds()

    return stats


def _register_debug_routes(app: FastAPI) -> None:
    # Introspection blocks; plain functions run in the threadpool
    @app.get("/debug/threads", response_class=PlainTextResponse)
    def debug_threads() -> str:
        return dump_threads()

    @app.get("/debug/gc")
    def debug_gc() -> Dict[str, Any]:
        return gc_statistics()

    @app.get("/debug/process")
    def debug_process() -> Dict[str, Any]:
        return process_statistics()


def get_default_app() -> FastAPI:
    """Get the process-wide debug application, creating it on first use."""
    global _default_app

    if _default_app is None:
        with _app_lock:
            if _default_app is None:
                app = FastAPI(
                    title="debug",
                    docs_url=None,
                    redoc_url=None,
                    openapi_url=None
                )
                _register_debug_routes(app)
                _default_app = app
                logger.debug("Created process-wide debug application")

    return _default_app


def create_private_app() -> FastAPI:
    """Create a fresh application carrying no routes."""
    return FastAPI(docs_url=None, redoc_url=None, openapi_url=None)


def attach_route(app: FastAPI, path: str, endpoint: Callable[..., Any]) -> None:
    """
    Attach a GET ``endpoint`` at ``path``.

    A route already bound to ``path`` is replaced, so the last attachment
    wins on a shared application. The application may already be serving:
    existing routes are never removed in place, the route table is swapped
    for a new list instead.
    """
    with _router_lock:
        stale = {
            id(route) for route in app.router.routes
            if isinstance(route, Route) and route.path == path
        }

        app.add_api_route(path, endpoint, methods=["GET"], include_in_schema=False)

        if stale:
            logger.warning(f"Replacing existing route at {path}")
            app.router.routes = [
                route for route in app.router.routes
                if id(route) not in stale
            ]
