"""Server-side code generators: start, probe, monitor and stop the plot server."""

from __future__ import annotations

from string import Template

from ..config import VisualizerConfig
from ..paths import resolve_output_dir

__all__ = [
    "STOP_CODE",
    "generate_monitor_code",
    "generate_server_code",
    "generate_simple_server_code",
    "generate_status_check_code",
    "generate_stop_code",
]

# Terminates the REPL process hosting the server; there is no confirmation
STOP_CODE = "import os; os._exit(0)"

_SERVER = Template(
    """\
# ssh-viz plot server
from ssh_visualizer.config import VisualizerConfig
from ssh_visualizer.server import PlotServer

_ssh_viz_server = PlotServer(VisualizerConfig.model_validate_json($config_json))
_ssh_viz_server.start_background()
print("ssh-viz plot server starting in background on http://$host:$port")
print("API endpoints: /api/plots, /api/status")
"""
)

_SIMPLE_SERVER = Template(
    """\
# Simple plot file server
import functools
import http.server
import threading


class _NoCacheHandler(http.server.SimpleHTTPRequestHandler):
    def end_headers(self):
        self.send_header('Cache-Control', 'no-cache')
        super().end_headers()


def _serve_plots():
    handler = functools.partial(_NoCacheHandler, directory=$directory)
    try:
        with http.server.ThreadingHTTPServer(($host, $port), handler) as httpd:
            print("Simple plot server: http://localhost:$port")
            httpd.serve_forever()
    except OSError as e:
        print(f"✗ Simple plot server error: {e}")


threading.Thread(target=_serve_plots, daemon=True).start()
print("Plot server started (simple mode)")
"""
)

_STATUS = Template(
    """\
import json
import urllib.request

try:
    with urllib.request.urlopen('http://localhost:$port/api/status', timeout=5) as response:
        data = json.loads(response.read().decode())
    print(f"✓ Server is running - {data['plot_count']} plots available")
    print(f"✓ Directory: {data['directory']}")
except Exception as e:
    print(f"✗ Server not accessible: {e}")
    print("Start server with: ssh-viz serve")
"""
)

_MONITOR = Template(
    """\
# ssh-viz server monitor
import threading
import time
from datetime import datetime

import requests


def _monitor_server():
    url = 'http://localhost:$port/api/status'
    while True:
        stamp = datetime.now().strftime('%H:%M:%S')
        try:
            data = requests.get(url, timeout=5).json()
            print(f"[{stamp}] Server OK - {data['plot_count']} plots")
        except Exception as e:
            print(f"[{stamp}] Server error: {e}")
        time.sleep($interval)


threading.Thread(target=_monitor_server, daemon=True).start()
print("Server monitoring started")
"""
)


def generate_server_code(config: VisualizerConfig) -> str:
    """Code that starts :class:`~ssh_visualizer.server.PlotServer` in the REPL.

    The REPL environment must have ``ssh-visualizer`` installed; see
    :func:`generate_simple_server_code` for a standard-library-only variant.
    """
    return _SERVER.substitute(
        config_json=repr(config.model_dump_json()),
        host=config.web_server.host,
        port=config.web_server.port,
    )


def generate_simple_server_code(config: VisualizerConfig) -> str:
    """Static file server using only the standard library (no JSON API)."""
    return _SIMPLE_SERVER.substitute(
        directory=repr(str(resolve_output_dir(config))),
        host=repr(config.web_server.host),
        port=config.web_server.port,
    )


def generate_status_check_code(config: VisualizerConfig) -> str:
    return _STATUS.substitute(port=config.web_server.port)


def generate_monitor_code(config: VisualizerConfig, interval: int = 30) -> str:
    return _MONITOR.substitute(port=config.web_server.port, interval=interval)


def generate_stop_code() -> str:
    return STOP_CODE
