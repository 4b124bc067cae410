"""Plot server lifecycle: ``STOPPED -> STARTING -> RUNNING -> STOPPED``.

A :class:`ServerController` owns the lifecycle state. Every transition is
performed by a single coordinator thread; callers (and launcher callbacks)
only post messages to its queue, so ``start`` and ``stop`` never block and
never race each other.

* ``start`` while starting or running and ``stop`` while stopped are no-ops
  that emit an informational notice.
* ``stop`` while starting is remembered and applied once the launch reports
  ready.
* Launch failures (for instance a port already in use) arrive
  asynchronously and return the state to ``STOPPED``.
* Stopping only issues a termination request through the launcher; whether
  the server actually exits depends on the launcher (the in-process launcher
  waits for a bounded confirmation, the REPL launcher cannot observe it).
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .codegen.server import generate_server_code, generate_stop_code
from .config import VisualizerConfig
from .diagnostics import format_server_url
from .repl import ExecutionChannel, send_to_repl
from .paths import ensure_directories
from .server import PlotServer, PortInUseError

logger = logging.getLogger(__name__)

Notify = Callable[[str, int], None]
ReadyCallback = Callable[[Any], None]
FailedCallback = Callable[[BaseException], None]


class ServerState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class LaunchError(RuntimeError):
    """The launcher could not hand the server to its host."""


# Launchers ----------------------------------------------------------------
class Launcher(ABC):
    """Starts and signals a plot server on some host."""

    @abstractmethod
    def launch(
        self,
        config: VisualizerConfig,
        on_ready: ReadyCallback,
        on_failed: FailedCallback,
    ) -> None:
        """Begin starting a server without blocking.

        Exactly one of the callbacks must eventually be called; ``on_ready``
        receives the handle later passed to :meth:`terminate`.
        """

    @abstractmethod
    def terminate(self, handle: Any) -> None:
        """Send a best-effort termination request for ``handle``."""


class ThreadLauncher(Launcher):
    """Run :class:`PlotServer` on a background thread of this process."""

    def __init__(self, shutdown_timeout: float = 5.0):
        self.shutdown_timeout = shutdown_timeout

    def launch(self, config, on_ready, on_failed):
        server = PlotServer(ensure_directories(config))
        server.start_background(on_ready=on_ready, on_error=on_failed)

    def terminate(self, handle: PlotServer) -> None:
        if handle is not None:
            handle.shutdown(timeout=self.shutdown_timeout)


class ReplLauncher(Launcher):
    """Start the server inside a REPL reached through an execution channel."""

    def __init__(self, channel: ExecutionChannel | None, session: str | None = None):
        self.channel = channel
        self.session = session

    def launch(self, config, on_ready, on_failed):
        if send_to_repl(self.channel, generate_server_code(config), self.session):
            on_ready(self.session)
        else:
            on_failed(LaunchError("Could not submit server code to the REPL"))

    def terminate(self, handle: Any) -> None:
        send_to_repl(self.channel, generate_stop_code(), self.session)


# Controller ---------------------------------------------------------------
@dataclass
class _Message:
    kind: str
    attempt: int = 0
    payload: Any = None


def _log_notify(message: str, level: int) -> None:
    logger.log(level, message)


class ServerController:
    """Single-owner coordinator for one plot server."""

    def __init__(self, launcher: Launcher | None = None, notify: Notify | None = None):
        self.launcher = launcher or ThreadLauncher()
        self.notify = notify or _log_notify
        self._queue: queue.Queue[_Message] = queue.Queue()
        self._changed = threading.Condition()
        self._state = ServerState.STOPPED
        self._handle: Any = None
        self._config: VisualizerConfig | None = None
        self._attempt = 0
        self._stop_pending = False
        self._thread = threading.Thread(
            target=self._run, name="ssh-viz-lifecycle", daemon=True
        )
        self._thread.start()

    # Public API ---------------------------------------------------------
    @property
    def state(self) -> ServerState:
        with self._changed:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is ServerState.RUNNING

    @property
    def config(self) -> VisualizerConfig | None:
        """Configuration of the most recent start request."""
        return self._config

    def start(self, config: VisualizerConfig) -> None:
        self._queue.put(_Message("start", payload=config))

    def stop(self) -> None:
        self._queue.put(_Message("stop"))

    def wait_for(self, state: ServerState, timeout: float | None = None) -> bool:
        with self._changed:
            return self._changed.wait_for(lambda: self._state is state, timeout)

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until every message posted so far has been processed."""
        done = threading.Event()
        self._queue.put(_Message("sync", payload=done))
        return done.wait(timeout)

    def close(self, timeout: float | None = None) -> None:
        """Stop the coordinator thread (the server itself is left alone)."""
        self._queue.put(_Message("close"))
        self._thread.join(timeout)

    # Coordinator --------------------------------------------------------
    def _run(self) -> None:
        while True:
            message = self._queue.get()
            try:
                if message.kind == "close":
                    return
                getattr(self, f"_on_{message.kind}")(message)
            except Exception:
                logger.exception(f"Lifecycle coordinator failed on '{message.kind}'")
            finally:
                self._queue.task_done()

    def _set_state(self, state: ServerState) -> None:
        with self._changed:
            self._state = state
            self._changed.notify_all()

    def _post(self, kind: str, attempt: int) -> Callable[[Any], None]:
        return lambda payload: self._queue.put(_Message(kind, attempt, payload))

    def _on_sync(self, message: _Message) -> None:
        message.payload.set()

    def _on_start(self, message: _Message) -> None:
        if self._state is ServerState.RUNNING:
            self.notify("Plot server is already running", logging.INFO)
            return
        if self._state is ServerState.STARTING:
            self.notify("Plot server is already starting", logging.INFO)
            return
        config: VisualizerConfig = message.payload
        self._attempt += 1
        self._config = config
        self._stop_pending = False
        self._set_state(ServerState.STARTING)
        web = config.web_server
        self.notify(f"Plot server starting on http://{web.host}:{web.port}", logging.INFO)
        try:
            self.launcher.launch(
                config,
                on_ready=self._post("ready", self._attempt),
                on_failed=self._post("failed", self._attempt),
            )
        except Exception as exc:
            self._queue.put(_Message("failed", self._attempt, exc))

    def _is_current(self, message: _Message) -> bool:
        current = (
            message.attempt == self._attempt
            and self._state is ServerState.STARTING
        )
        if not current:
            logger.debug(f"Ignoring stale '{message.kind}' for attempt {message.attempt}")
        return current

    def _on_ready(self, message: _Message) -> None:
        if not self._is_current(message):
            return
        self._handle = message.payload
        self._set_state(ServerState.RUNNING)
        if self._stop_pending:
            self._stop_pending = False
            self._terminate()
            return
        url = format_server_url(self._config)
        self.notify(f"Plot server running at {url}", logging.INFO)

    def _on_failed(self, message: _Message) -> None:
        if not self._is_current(message):
            return
        self._handle = None
        self._stop_pending = False
        self._set_state(ServerState.STOPPED)
        exc = message.payload
        if isinstance(exc, PortInUseError):
            self.notify(str(exc), logging.ERROR)
        else:
            self.notify(f"Plot server failed to start: {exc}", logging.ERROR)

    def _on_stop(self, message: _Message) -> None:
        if self._state is ServerState.STOPPED:
            self.notify("No plot server is running", logging.INFO)
            return
        if self._state is ServerState.STARTING:
            self._stop_pending = True
            self.notify("Plot server will stop once it has started", logging.INFO)
            return
        self._terminate()

    def _terminate(self) -> None:
        handle, self._handle = self._handle, None
        try:
            self.launcher.terminate(handle)
        except Exception as exc:
            logger.warning(f"Termination request failed: {exc}")
        self._set_state(ServerState.STOPPED)
        self.notify("Plot server stopped", logging.INFO)


def setup_session(
    config: VisualizerConfig,
    launcher: Launcher | None = None,
    notify: Notify | None = None,
) -> ServerController:
    """Prepare a plotting session for ``config``.

    Creates the configured directories and a :class:`ServerController`. The
    server is started immediately when ``web_server.auto_start`` is set.
    """
    config = ensure_directories(config)
    controller = ServerController(launcher, notify)
    if config.web_server.auto_start:
        controller.start(config)
    return controller


__all__ = [
    "LaunchError",
    "Launcher",
    "ReplLauncher",
    "ServerController",
    "ServerState",
    "ThreadLauncher",
    "setup_session",
]
