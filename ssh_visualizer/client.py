"""HTTP client for a running plot server's JSON API."""

from __future__ import annotations

from typing import Any

import requests

from .catalog import CatalogEntry
from .config import VisualizerConfig


class ServerUnavailableError(RuntimeError):
    """The plot server could not be reached or returned an invalid reply."""


def _base_url(config: VisualizerConfig, host: str | None) -> str:
    if host is None:
        host = config.web_server.host
        # A wildcard bind address is reachable through loopback
        if host in ("", "0.0.0.0", "::"):
            host = "localhost"
    return f"http://{host}:{config.web_server.port}"


def _get_json(url: str, timeout: float) -> Any:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        raise ServerUnavailableError(f"Server not accessible at {url}: {exc}") from exc


def fetch_status(
    config: VisualizerConfig, host: str | None = None, timeout: float = 5
) -> dict[str, Any]:
    """Return the ``/api/status`` payload of the configured server."""
    return _get_json(f"{_base_url(config, host)}/api/status", timeout)


def fetch_plots(
    config: VisualizerConfig, host: str | None = None, timeout: float = 5
) -> list[CatalogEntry]:
    """Return the server's catalog as :class:`CatalogEntry` objects."""
    payload = _get_json(f"{_base_url(config, host)}/api/plots", timeout)
    return [CatalogEntry.model_validate(item) for item in payload]


__all__ = ["ServerUnavailableError", "fetch_plots", "fetch_status"]
