"""Execution channels: where generated source code is sent to run.

An :class:`ExecutionChannel` accepts a source string and a target session and
reports whether the *submission* succeeded. Whether the code later runs
without error is only visible in the session's own output (here: the log).
"""

from __future__ import annotations

import logging
import threading
import traceback
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any

from .diagnostics import format_python_error, parse_python_error

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "python"


class ExecutionChannel(ABC):
    """Minimal contract for a code execution backend."""

    @abstractmethod
    def submit(self, code: str, session: str | None = None) -> bool:
        """Queue ``code`` for execution in ``session``; True if accepted."""


@dataclass
class _Session:
    name: str
    namespace: dict[str, Any] = field(default_factory=dict)
    executor: ThreadPoolExecutor = field(init=False)

    def __post_init__(self):
        self.namespace.setdefault("__name__", "__main__")
        self.executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"ssh-viz-repl-{self.name}"
        )


class InProcessChannel(ExecutionChannel):
    """Run submitted code in persistent namespaces inside this process.

    Each session executes on its own single worker thread, so submissions to
    one session run in order and never block the submitter. Code that exits
    the interpreter (``os._exit``) ends this process too; pair remote-stop
    code with an out-of-process channel.
    """

    def __init__(self, open_default: bool = True):
        self._sessions: dict[str, _Session] = {}
        self._lock = threading.Lock()
        if open_default:
            self.open_session(DEFAULT_SESSION)

    @property
    def sessions(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def open_session(self, name: str = DEFAULT_SESSION) -> dict[str, Any]:
        with self._lock:
            session = self._sessions.get(name)
            if session is None:
                session = self._sessions[name] = _Session(name)
            return session.namespace

    def close_session(self, name: str = DEFAULT_SESSION) -> None:
        with self._lock:
            session = self._sessions.pop(name, None)
        if session is not None:
            session.executor.shutdown(wait=False)

    def namespace(self, name: str = DEFAULT_SESSION) -> dict[str, Any]:
        with self._lock:
            return self._sessions[name].namespace

    def submit(self, code: str, session: str | None = None) -> bool:
        name = session or DEFAULT_SESSION
        with self._lock:
            target = self._sessions.get(name)
        if target is None:
            logger.warning(f"No active REPL session '{name}'. Please start a REPL first.")
            return False
        try:
            compiled = compile(code, f"<ssh-viz:{name}>", "exec")
        except SyntaxError as exc:
            logger.error(f"Rejected submission to '{name}': {exc}")
            return False
        try:
            target.executor.submit(self._execute, name, compiled, target.namespace)
        except RuntimeError as exc:  # executor shut down concurrently
            logger.warning(f"REPL session '{name}' is closed: {exc}")
            return False
        return True

    def wait(self, session: str | None = None, timeout: float | None = None) -> bool:
        """Block until earlier submissions to ``session`` have run."""
        name = session or DEFAULT_SESSION
        with self._lock:
            target = self._sessions.get(name)
        if target is None:
            return True
        try:
            target.executor.submit(lambda: None).result(timeout)
        except FutureTimeoutError:
            return False
        return True

    @staticmethod
    def _execute(name: str, compiled, namespace: dict[str, Any]) -> None:
        try:
            exec(compiled, namespace)
        except Exception:
            error = parse_python_error(traceback.format_exc())
            if error is not None:
                logger.error(f"[{name}] {format_python_error(error)}")


def send_to_repl(
    channel: ExecutionChannel | None, code: str, session: str | None = None
) -> bool:
    """Submit ``code`` through ``channel``; never raises for a missing channel."""
    if channel is None:
        logger.error(
            "No execution channel available. Configure a REPL integration for "
            "code execution."
        )
        return False
    try:
        return channel.submit(code, session)
    except OSError as exc:
        logger.error(f"Failed to submit code to REPL: {exc}")
        return False


__all__ = ["DEFAULT_SESSION", "ExecutionChannel", "InProcessChannel", "send_to_repl"]
