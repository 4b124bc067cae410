"""Artifact catalog and naming commands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from ..catalog import list_artifacts
from ..client import ServerUnavailableError, fetch_status
from ..naming import EXTENSIONS, artifact_pair, generate_filename
from ..paths import resolve_output_dir


@click.command("list")
@click.option(
    "--dir",
    "directory",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to list [default: resolved output directory]",
)
@click.option("--json", "as_json", is_flag=True, help="Emit the catalog as JSON")
@click.pass_obj
def list_cmd(obj, directory: Path | None, as_json: bool):
    """List plot artifacts, newest first."""
    target = directory or resolve_output_dir(obj.config)
    entries = sorted(
        list_artifacts(target), key=lambda e: (e.modified, e.name), reverse=True
    )
    if as_json:
        click.echo(json.dumps([e.model_dump() for e in entries], indent=2))
        return
    if not entries:
        click.echo(f"No plots found in {target}")
        return
    for entry in entries:
        click.echo(f"{entry.modified}  {entry.size:>8}  {entry.name}")


@click.command("status")
@click.option("--host", default=None, help="Server host [default: from config]")
@click.option("--timeout", default=5.0, type=float, show_default=True)
@click.pass_obj
def status_cmd(obj, host: str | None, timeout: float):
    """Query a running plot server's /api/status endpoint."""
    try:
        status = fetch_status(obj.config, host=host, timeout=timeout)
    except ServerUnavailableError as exc:
        click.echo(f"✗ {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(f"✓ Server is running - {status.get('plot_count', 0)} plots available")
    click.echo(f"✓ Directory: {status.get('directory', '')}")


@click.command("filename")
@click.argument("base_name")
@click.argument("extension", type=click.Choice(list(EXTENSIONS)))
@click.option(
    "--pair",
    is_flag=True,
    help="Print the image and HTML names sharing one stem (extension ignored)",
)
@click.pass_obj
def filename_cmd(obj, base_name: str, extension: str, pair: bool):
    """Print the artifact filename the current configuration would produce."""
    if pair:
        image, html = artifact_pair(base_name, obj.config)
        click.echo(image)
        click.echo(html)
        return
    click.echo(generate_filename(base_name, extension, obj.config))


@click.command("outdir")
@click.pass_obj
def outdir_cmd(obj):
    """Print the directory artifacts are written to and served from."""
    click.echo(str(resolve_output_dir(obj.config)))


__all__ = ["filename_cmd", "list_cmd", "outdir_cmd", "status_cmd"]
