"""Serve command: run the plot server in the foreground."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click

from ..config import ConfigError, build_config
from ..paths import resolve_output_dir
from ..server import PlotServer, PortInUseError, ServerStartError, run_server

logger = logging.getLogger(__name__)


@click.command("serve")
@click.option(
    "--host",
    envvar="SSH_VIZ_HOST",
    default=None,
    help="Host to bind (env: SSH_VIZ_HOST) [default: from config]",
)
@click.option(
    "--port",
    envvar="SSH_VIZ_PORT",
    default=None,
    type=int,
    help="Port to bind (env: SSH_VIZ_PORT) [default: from config]",
)
@click.option(
    "--output-dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    help="Directory to publish [default: from config]",
)
@click.option("--cors/--no-cors", default=None, help="Emit permissive CORS headers")
@click.pass_obj
def serve_cmd(
    obj,
    host: str | None,
    port: int | None,
    output_dir: Path | None,
    cors: bool | None,
):
    """Publish the plot directory over HTTP until interrupted.

    Examples:
        # Serve using the configuration file defaults
        ssh-viz serve

        # Serve a specific directory on a custom port
        ssh-viz serve --output-dir ./plots --port 9000
    """
    web: dict[str, Any] = {}
    if host is not None:
        web["host"] = host
    if port is not None:
        web["port"] = port
    if cors is not None:
        web["cors_enabled"] = cors
    overrides: dict[str, Any] = {"web_server": web} if web else {}
    if output_dir is not None:
        overrides["output_dir"] = output_dir
    try:
        config = build_config(overrides, base=obj.config)
    except ConfigError as exc:
        for error in exc.errors:
            click.echo(f"✗ {error}", err=True)
        raise SystemExit(1) from exc

    click.echo(f"Starting plot server in directory: {resolve_output_dir(config)}")
    try:
        run_server(config, on_ready=_announce)
    except PortInUseError as exc:
        click.echo(f"✗ {exc}", err=True)
        raise SystemExit(2) from exc
    except ServerStartError as exc:
        click.echo(f"✗ {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\n✓ Server stopped")


def _announce(server: PlotServer) -> None:
    click.echo(f"✓ Plot server running at {server.url}")
    click.echo("✓ API endpoints: /api/plots, /api/status")
    click.echo("✓ Press Ctrl+C to stop server")


__all__ = ["serve_cmd"]
