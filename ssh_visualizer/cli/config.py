"""Configuration validation and diagnostics commands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from ..config import ConfigError, load_config
from ..diagnostics import get_debug_info


@click.command("validate")
@click.argument(
    "path",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.pass_obj
def validate_cmd(obj, path: Path | None):
    """Validate a YAML configuration file (default: the --config file)."""
    target = path or obj.config_path
    try:
        load_config(target)
    except ConfigError as exc:
        click.echo("Validation FAILED:")
        for error in exc.errors:
            click.echo(f" - {error}")
        raise SystemExit(1) from exc
    click.echo(f"Configuration OK ({target if target else 'defaults'})")


@click.command("info")
@click.option("--json", "as_json", is_flag=True, help="Emit the report as JSON")
@click.pass_obj
def info_cmd(obj, as_json: bool):
    """Show directory, server and network diagnostics."""
    info = get_debug_info(obj.config)
    if as_json:
        click.echo(json.dumps(info, indent=2))
        return
    dirs = info["directories"]
    click.echo(f"ssh-visualizer {info['plugin_version']}")
    click.echo(f"  output_dir:   {info['output_dir']} (exists: {dirs['output_exists']})")
    click.echo(f"  shared_dir:   {info['shared_dir']} (exists: {dirs['shared_exists']})")
    click.echo(f"  resolved_dir: {info['resolved_dir']}")
    click.echo(f"  server:       {'running' if info['server_running'] else 'stopped'}")
    click.echo(f"  local_ip:     {info['local_ip']}")


__all__ = ["info_cmd", "validate_cmd"]
