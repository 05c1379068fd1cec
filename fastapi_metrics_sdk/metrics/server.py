"""
Metrics exporter server.

This module owns the exporter lifecycle: it chooses the routing table
(the shared debug application or a private one), attaches the exposition
handler at the configured path and serves it with uvicorn on a background
thread. Startup returns an ``ExporterHandle`` that reports listener
failures and can stop the server.

States:
    UNINITIALIZED -> STARTING -> LISTENING -> STOPPED
    STARTING -> FAILED (handler build failure, raised synchronously)
    STARTING/LISTENING -> FAILED (listener failure, recorded on the handle)

Author: FastAPI Metrics SDK
Version: 1.0.0
"""

import logging
import socket
import threading
from enum import Enum
from typing import Callable, List, Optional

import uvicorn

from ..config import DEFAULT_METRIC_PATH, DEFAULT_METRIC_PORT, MetricsSettings, get_settings
from .debug import attach_route, create_private_app, get_default_app
from .exceptions import HandlerBuildError, ListenError
from .exporter import PrometheusExporter
from .registry import MetricRegistry


logger = logging.getLogger("metrics.server")


class ExporterState(Enum):
    """Lifecycle states of an exporter."""
    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    LISTENING = "listening"
    FAILED = "failed"
    STOPPED = "stopped"


class _UvicornServer(uvicorn.Server):
    """uvicorn server that reports when its listeners are up."""

    def __init__(self, config: uvicorn.Config, on_started: Callable[[], None]):
        super().__init__(config)
        self._on_started = on_started

    async def startup(self, sockets: Optional[List[socket.socket]] = None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            self._on_started()


class ExporterHandle:
    """Lifecycle handle of a started exporter."""

    def __init__(self, path: str, host: str, port: int):
        self.path = path
        self.host = host
        self._requested_port = port
        self._bound_port: Optional[int] = None

        self._state = ExporterState.STARTING
        self._condition = threading.Condition()
        self._exception: Optional[ListenError] = None
        self._stop_requested = False

        self._server: Optional[_UvicornServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ExporterState:
        with self._condition:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state in (ExporterState.STARTING, ExporterState.LISTENING)

    @property
    def port(self) -> int:
        """Bound port once listening (resolves port 0), requested port before."""
        return self._bound_port if self._bound_port is not None else self._requested_port

    def exception(self) -> Optional[ListenError]:
        """The listener failure, if the exporter failed."""
        with self._condition:
            return self._exception

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the listener is up.

        Returns:
            True when listening, False if ``timeout`` elapsed first or the
            exporter was stopped

        Raises:
            ListenError: the listener failed
        """
        with self._condition:
            self._condition.wait_for(
                lambda: self._state != ExporterState.STARTING,
                timeout=timeout
            )
            if self._state == ExporterState.FAILED and self._exception is not None:
                raise self._exception
            return self._state == ExporterState.LISTENING

    def stop(self, timeout: Optional[float] = 5.0) -> bool:
        """
        Stop the listener and wait for the serving thread to end.

        Returns:
            True if the serving thread has ended
        """
        with self._condition:
            self._stop_requested = True

        if self._server is not None:
            self._server.should_exit = True

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            stopped = not self._thread.is_alive()
        else:
            stopped = True

        with self._condition:
            if stopped and self._state != ExporterState.FAILED:
                self._set_state(ExporterState.STOPPED)

        logger.info(f"Stopped exporter at {self.host}:{self.port}{self.path}")
        return stopped

    def _set_state(self, state: ExporterState) -> None:
        # Caller holds self._condition
        self._state = state
        self._condition.notify_all()

    def _mark_listening(self) -> None:
        with self._condition:
            if self._state == ExporterState.STARTING:
                self._set_state(ExporterState.LISTENING)
        logger.info(f"Exporter listening at {self.host}:{self.port}{self.path}")

    def _fail(self, error: ListenError) -> None:
        with self._condition:
            self._exception = error
            self._set_state(ExporterState.FAILED)

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family=family)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        try:
            sock.bind((self.host, self._requested_port))
        except OSError:
            sock.close()
            raise

        self._bound_port = sock.getsockname()[1]
        return sock

    def _serve(self) -> None:
        """Serving thread body."""
        try:
            sock = self._bind()
            self._server.run(sockets=[sock])
        except (Exception, SystemExit) as e:
            error = ListenError(
                message=f"Exporter at {self.host}:{self.port}{self.path} failed: {e}",
                host=self.host,
                port=self.port,
                path=self.path,
                original_error=e
            )
            logger.error(f"Start exporter at {self.host}:{self.port}{self.path} failed: {e}")
            self._fail(error)
            return

        with self._condition:
            stop_requested = self._stop_requested

        if stop_requested:
            with self._condition:
                self._set_state(ExporterState.STOPPED)
            return

        error = ListenError(
            message=f"Exporter at {self.host}:{self.port}{self.path} terminated unexpectedly",
            host=self.host,
            port=self.port,
            path=self.path
        )
        logger.error(str(error))
        self._fail(error)

    def __repr__(self) -> str:
        return f"ExporterHandle(address={self.host}:{self.port}{self.path}, state={self.state.value})"


class ExporterServer:
    """Serves the exposition of one registry on one port."""

    def __init__(
        self,
        expose_path: str = DEFAULT_METRIC_PATH,
        listen_port: int = DEFAULT_METRIC_PORT,
        share_debug_router: bool = False,
        registry: Optional[MetricRegistry] = None,
        listen_host: str = "0.0.0.0"
    ):
        self.expose_path = expose_path
        self.listen_port = listen_port
        self.share_debug_router = share_debug_router
        self.listen_host = listen_host
        self.exporter = PrometheusExporter(registry)

        self.app = None
        self._handle: Optional[ExporterHandle] = None
        self._state = ExporterState.UNINITIALIZED
        self._lock = threading.Lock()

    @property
    def state(self) -> ExporterState:
        if self._handle is not None:
            return self._handle.state
        return self._state

    @property
    def handle(self) -> Optional[ExporterHandle]:
        return self._handle

    def start(self) -> ExporterHandle:
        """
        Attach the exposition handler and start listening in the background.

        Returns immediately; use the handle to wait for the listener or to
        observe a late failure. Calling ``start`` again while the previous
        handle is running returns that handle.

        Raises:
            HandlerBuildError: the exposition handler could not be built
        """
        with self._lock:
            if self._handle is not None and self._handle.is_running:
                return self._handle

            self._state = ExporterState.STARTING
            self._handle = None

            try:
                handler = self._build_handler()
            except HandlerBuildError as e:
                self._state = ExporterState.FAILED
                logger.error(f"Init metrics exporter failed: {e}")
                raise

            self.app = get_default_app() if self.share_debug_router else create_private_app()
            attach_route(self.app, self.expose_path, handler)

            handle = ExporterHandle(self.expose_path, self.listen_host, self.listen_port)
            config = uvicorn.Config(
                self.app,
                host=self.listen_host,
                port=self.listen_port,
                lifespan="off",
                access_log=False,
                log_level="warning"
            )
            handle._server = _UvicornServer(config, on_started=handle._mark_listening)
            handle._thread = threading.Thread(
                target=handle._serve,
                name=f"metrics-exporter-{self.listen_port}",
                daemon=True
            )

            logger.info(f"Starting exporter at {self.listen_host}:{self.listen_port}{self.expose_path}")
            handle._thread.start()

            self._handle = handle
            return handle

    def _build_handler(self):
        if not self.expose_path.startswith('/'):
            raise HandlerBuildError(
                message=f"Metrics path '{self.expose_path}' must start with '/'",
                path=self.expose_path
            )

        try:
            return self.exporter.build_handler()
        except HandlerBuildError as e:
            e.path = self.expose_path
            raise
        except Exception as e:
            raise HandlerBuildError(
                message=f"Install prometheus pipeline failed: {e}",
                path=self.expose_path,
                original_error=e
            )


# Process-wide exporter
_active_handle: Optional[ExporterHandle] = None
_exporter_lock = threading.Lock()


def start_exporter(
    expose_path: str = DEFAULT_METRIC_PATH,
    listen_port: int = DEFAULT_METRIC_PORT,
    share_debug_router: bool = False,
    registry: Optional[MetricRegistry] = None,
    listen_host: str = "0.0.0.0"
) -> ExporterHandle:
    """
    Start the process-wide exporter.

    While a previously started exporter is starting or listening its handle
    is returned and no second listener is bound. After a failure or a stop
    a new exporter is started.

    Example:
        handle = start_exporter("/metric", 18089)
        handle.wait_until_listening(timeout=5)
    """
    global _active_handle

    with _exporter_lock:
        if _active_handle is not None and _active_handle.is_running:
            logger.warning(
                f"Exporter already running at {_active_handle.host}:{_active_handle.port}{_active_handle.path}, "
                f"ignoring start request for port {listen_port}"
            )
            return _active_handle

        server = ExporterServer(
            expose_path=expose_path,
            listen_port=listen_port,
            share_debug_router=share_debug_router,
            registry=registry,
            listen_host=listen_host
        )
        _active_handle = server.start()
        return _active_handle


def get_active_exporter() -> Optional[ExporterHandle]:
    """Get the handle of the process-wide exporter, if one was started."""
    with _exporter_lock:
        return _active_handle


def stop_exporter(timeout: Optional[float] = 5.0) -> bool:
    """Stop the process-wide exporter; True if nothing is left running."""
    global _active_handle

    with _exporter_lock:
        handle = _active_handle
        _active_handle = None

    if handle is None:
        return True
    return handle.stop(timeout)


def initialize_metrics(settings: Optional[MetricsSettings] = None) -> Optional[ExporterHandle]:
    """
    Start the exporter from configuration.

    Returns ``None`` when ``METRIC_ENABLE`` is off. The debug application is
    shared when ``PPROF_ENABLE`` is on. A ``HandlerBuildError`` is logged by
    the server and propagated.

    Example:
        # METRIC_ENABLE=true METRIC_PORT=18089
        handle = initialize_metrics()
    """
    settings = settings or get_settings()

    if not settings.metric_enable:
        logger.debug("Metrics exporter disabled")
        return None

    return start_exporter(
        expose_path=settings.metric_path,
        listen_port=settings.metric_port,
        share_debug_router=settings.pprof_enable,
        listen_host=settings.metric_host
    )
