"""CLI command group for ssh-visualizer.

This module exposes the root Click command group `ssh_viz` which aggregates
subcommands implemented in sibling modules (e.g. `serve`, `list`).

Example usage:

        ssh-viz serve --port 8888
        ssh-viz list --json
        ssh-viz codegen line prices
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

import click
import dotenv

from .. import __version__
from ..config import ConfigError, VisualizerConfig, load_config
from .catalog import filename_cmd, list_cmd, outdir_cmd, status_cmd
from .codegen import codegen_cmd
from .config import info_cmd, validate_cmd
from .serve import serve_cmd

# Option envvars (SSH_VIZ_CONFIG, SSH_VIZ_PORT, ...) may come from a local .env
dotenv.load_dotenv(".env")

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


@dataclass
class CliContext:
    """Shared state handed to subcommands through ``ctx.obj``."""

    config_path: Path | None = None

    @cached_property
    def config(self) -> VisualizerConfig:
        try:
            return load_config(self.config_path)
        except ConfigError as exc:
            click.echo("Invalid configuration:", err=True)
            for error in exc.errors:
                click.echo(f" - {error}", err=True)
            raise SystemExit(1) from exc


def _print_version(
    ctx: click.Context, param: click.Parameter, value: bool
) -> None:  # pragma: no cover - simple utility
    """Callback to print only the raw version and exit early."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(__version__)
    ctx.exit()


@click.group()
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the ssh-visualizer version and exit (raw version only).",
)
@click.option(
    "--config",
    "config_path",
    envvar="SSH_VIZ_CONFIG",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML configuration file (env: SSH_VIZ_CONFIG)",
)
@click.option(
    "--log-level",
    envvar="SSH_VIZ_LOG_LEVEL",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set the logging level (env: SSH_VIZ_LOG_LEVEL)",
)
@click.pass_context
def ssh_viz(ctx: click.Context, config_path: Path | None, log_level: str):
    """Name, catalog and publish plot artifacts for remote REPL sessions."""
    logging.basicConfig(level=getattr(logging, log_level), format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist; force the requested level
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))
    for handler in root_logger.handlers:
        handler.setLevel(getattr(logging, log_level))
    ctx.obj = CliContext(config_path)


# Register subcommands
ssh_viz.add_command(serve_cmd)
ssh_viz.add_command(list_cmd)
ssh_viz.add_command(status_cmd)
ssh_viz.add_command(filename_cmd)
ssh_viz.add_command(outdir_cmd)
ssh_viz.add_command(validate_cmd)
ssh_viz.add_command(info_cmd)
ssh_viz.add_command(codegen_cmd)

__all__ = ["CliContext", "ssh_viz"]
