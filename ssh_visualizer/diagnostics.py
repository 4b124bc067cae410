"""Environment probes and error parsing used by the CLI and REPL glue."""

from __future__ import annotations

import re
import socket
from dataclasses import dataclass, field
from typing import Any

from . import __version__
from .config import VisualizerConfig
from .paths import resolve_output_dir

_ERROR_LINE = re.compile(r"^\w+(Error|Exception|Interrupt|Exit):")


@dataclass
class PythonError:
    """Summary of a Python traceback found in REPL output."""

    type: str = "Unknown"
    message: str = "Unknown error"
    traceback: list[str] = field(default_factory=list)


def parse_python_error(output: str | None) -> PythonError | None:
    """Extract the exception line and frame lines from ``output``."""
    if not output:
        return None
    error = PythonError()
    for line in output.splitlines():
        if line.startswith("Traceback"):
            error.type = "Exception"
        elif _ERROR_LINE.match(line):
            error.message = line
        elif line.startswith("  File"):
            error.traceback.append(line)
    return error


def format_python_error(error: PythonError) -> str:
    message = f"Python Error: {error.message}"
    if error.traceback:
        message += "\nTraceback: " + "\n".join(error.traceback)
    return message


def is_server_running(port: int, host: str = "127.0.0.1", timeout: float = 0.5) -> bool:
    """Return True when something accepts TCP connections on ``host:port``."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def get_local_ip() -> str:
    """Best-effort address other machines can reach this host on."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            # UDP connect sends nothing; it only selects the outbound interface
            sock.connect(("10.255.255.255", 1))
            ip = sock.getsockname()[0]
    except OSError:
        return "localhost"
    return ip if ip and not ip.startswith("0.") else "localhost"


def format_server_url(config: VisualizerConfig, ip: str | None = None) -> str:
    return f"http://{ip or get_local_ip()}:{config.web_server.port}"


def get_debug_info(config: VisualizerConfig) -> dict[str, Any]:
    """Collect plugin and environment facts for troubleshooting."""
    shared = config.shared_dir
    return {
        "plugin_version": __version__,
        "output_dir": str(config.output_dir),
        "shared_dir": str(shared) if shared is not None else None,
        "resolved_dir": str(resolve_output_dir(config)),
        "directories": {
            "output_exists": config.output_dir.is_dir(),
            "shared_exists": shared is not None and shared.is_dir(),
        },
        "server_running": is_server_running(config.web_server.port),
        "local_ip": get_local_ip(),
    }


__all__ = [
    "PythonError",
    "format_python_error",
    "format_server_url",
    "get_debug_info",
    "get_local_ip",
    "is_server_running",
    "parse_python_error",
]
