"""
ssh-visualizer plot server.

A small threaded HTTP server publishing the resolved output directory:

- ``/``            index page that renders the catalog client-side
- ``/api/plots``   catalog JSON (``[{name, html, image, modified, size}]``)
- ``/api/status``  server status JSON
- anything else    static files rooted at the output directory

Every request is handled on its own thread and recomputes whatever it needs
from disk; the server holds no state besides its configuration and root.
"""

import errno
import json
import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlsplit

from .catalog import count_artifacts, list_artifacts
from .config import VisualizerConfig
from .paths import ensure_directories, resolve_output_dir
from .rendering import render_index

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"

_ADDRESS_IN_USE = {errno.EADDRINUSE, getattr(errno, "WSAEADDRINUSE", errno.EADDRINUSE)}


def _configure_logging():  # lightweight, idempotent
    if getattr(_configure_logging, "_done", False):  # type: ignore[attr-defined]
        return
    level_name = os.getenv("SSH_VIZ_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")
    _configure_logging._done = True  # type: ignore[attr-defined]


class ServerStartError(RuntimeError):
    """The server could not bind its listening socket."""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Server error on {host}:{port}: {reason}")


class PortInUseError(ServerStartError):
    """The requested port is held by another process (``EADDRINUSE``)."""

    def __init__(self, host: str, port: int):
        super().__init__(host, port, "address already in use")

    def __str__(self) -> str:
        return (
            f"Port {self.port} is already in use. "
            "Try a different port or stop the existing server."
        )


class PlotRequestHandler(SimpleHTTPRequestHandler):
    """Static file handler for the output directory plus the JSON API."""

    server: "PlotHTTPServer"

    routes = {
        "/": "_route_index",
        "/api/plots": "_route_plots",
        "/api/status": "_route_status",
    }

    def __init__(self, request, client_address, server, **kwargs):
        super().__init__(
            request, client_address, server, directory=str(server.directory), **kwargs
        )

    def end_headers(self):
        # Disable caching so clients always see fresh artifacts
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        self.send_header("Pragma", "no-cache")
        self.send_header("Expires", "0")
        if self.server.config.web_server.cors_enabled:
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")
            self.send_header("Access-Control-Allow-Headers", "Content-Type")
        super().end_headers()

    def do_GET(self):
        self._dispatch(head_only=False)

    def do_HEAD(self):
        self._dispatch(head_only=True)

    def do_OPTIONS(self):
        self.send_response(HTTPStatus.NO_CONTENT)
        self.send_header("Allow", "GET, HEAD, OPTIONS")
        self.send_header("Content-Length", "0")
        self.end_headers()

    # Routing -----------------------------------------------------------
    def _dispatch(self, head_only: bool) -> None:
        route = self.routes.get(urlsplit(self.path).path)
        if route is None:
            if head_only:
                super().do_HEAD()
            else:
                super().do_GET()
            return
        status = HTTPStatus.OK
        try:
            content_type, body = getattr(self, route)()
        except Exception as exc:
            logger.exception(f"Error handling {self.path}")
            status = HTTPStatus.INTERNAL_SERVER_ERROR
            content_type = JSON_CONTENT_TYPE
            body = json.dumps({"status": "error", "error": str(exc)})
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if not head_only:
            self.wfile.write(payload)

    def _route_index(self) -> tuple[str, str]:
        return HTML_CONTENT_TYPE, render_index(self.server.port)

    def _route_plots(self) -> tuple[str, str]:
        entries = list_artifacts(self.server.directory)
        return JSON_CONTENT_TYPE, json.dumps([e.model_dump() for e in entries])

    def _route_status(self) -> tuple[str, str]:
        status = {
            "status": "running",
            "timestamp": datetime.now().isoformat(),
            "port": self.server.port,
            "directory": str(self.server.directory),
            "plot_count": count_artifacts(self.server.directory),
        }
        return JSON_CONTENT_TYPE, json.dumps(status)

    def log_message(self, format, *args):
        logger.info(f"{self.address_string()} - {format % args}")


class PlotHTTPServer(ThreadingHTTPServer):
    """Handle each request in a separate daemon thread."""

    allow_reuse_address = True
    allow_reuse_port = False
    daemon_threads = True

    def __init__(self, address: tuple[str, int], config: VisualizerConfig, directory: Path):
        self.config = config
        self.directory = directory
        super().__init__(address, PlotRequestHandler)

    @property
    def port(self) -> int:
        return int(self.server_address[1])


@dataclass
class PlotServer:
    """Publish the resolved output directory over HTTP."""

    config: VisualizerConfig

    httpd: PlotHTTPServer | None = field(init=False, default=None, repr=False)
    directory: Path | None = field(init=False, default=None)
    _thread: threading.Thread | None = field(init=False, default=None, repr=False)

    def __post_init__(self):
        _configure_logging()

    @property
    def host(self) -> str:
        return self.config.web_server.host

    @property
    def port(self) -> int:
        """Bound port once listening, otherwise the configured port."""
        if self.httpd is not None:
            return self.httpd.port
        return self.config.web_server.port

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def bind(self) -> PlotHTTPServer:
        """Open the listening socket.

        Raises:
            PortInUseError: the port is already taken.
            ServerStartError: any other OS level failure.
        """
        if self.httpd is not None:
            return self.httpd
        directory = Path(resolve_output_dir(self.config)).resolve()
        host, port = self.host, self.config.web_server.port
        try:
            httpd = PlotHTTPServer((host, port), self.config, directory)
        except OSError as exc:
            if exc.errno in _ADDRESS_IN_USE:
                raise PortInUseError(host, port) from exc
            raise ServerStartError(host, port, str(exc)) from exc
        self.httpd, self.directory = httpd, directory
        logger.info(f"Plot server listening on {self.url}, serving {directory}")
        return httpd

    def serve_forever(self, poll_interval: float = 0.5) -> None:
        """Bind (if needed) and serve until :meth:`shutdown` is called."""
        httpd = self.bind()
        try:
            httpd.serve_forever(poll_interval=poll_interval)
        finally:
            httpd.server_close()
            self.httpd = None
            logger.info(f"Plot server on port {httpd.port} stopped")

    def start_background(
        self,
        on_ready: Callable[["PlotServer"], None] | None = None,
        on_error: Callable[[ServerStartError], None] | None = None,
    ) -> threading.Thread:
        """Serve from a daemon thread and return immediately.

        Bind failures are logged and handed to ``on_error`` from the server
        thread; they are never raised to the caller.
        """

        def _run():
            try:
                self.bind()
            except ServerStartError as exc:
                logger.error(str(exc))
                if on_error is not None:
                    on_error(exc)
                return
            if on_ready is not None:
                on_ready(self)
            self.serve_forever()

        thread = threading.Thread(
            target=_run, name=f"ssh-viz-server-{self.config.web_server.port}", daemon=True
        )
        self._thread = thread
        thread.start()
        return thread

    def shutdown(self, timeout: float = 5.0) -> bool:
        """Request the serve loop to stop and wait up to ``timeout`` seconds.

        Returns True when the server confirmed the stop.
        """
        httpd = self.httpd
        if httpd is None:
            return True
        # shutdown() blocks until serve_forever exits; never block the caller on it
        stopper = threading.Thread(
            target=httpd.shutdown, name="ssh-viz-server-stop", daemon=True
        )
        stopper.start()
        waiter = self._thread if self._thread is not None else stopper
        waiter.join(timeout)
        if waiter.is_alive():
            logger.warning(
                f"Plot server on port {httpd.port} did not confirm shutdown "
                f"within {timeout}s"
            )
            return False
        return True


def run_server(
    config: VisualizerConfig,
    on_ready: Callable[["PlotServer"], None] | None = None,
) -> None:
    """Serve ``config``'s output directory in the foreground.

    ``on_ready`` is called once the socket is bound, before serving starts.
    """
    server = PlotServer(ensure_directories(config))
    server.bind()
    if on_ready is not None:
        on_ready(server)
    logger.info("API endpoints: /api/plots, /api/status")
    server.serve_forever()


__all__ = [
    "PlotHTTPServer",
    "PlotRequestHandler",
    "PlotServer",
    "PortInUseError",
    "ServerStartError",
    "run_server",
]
