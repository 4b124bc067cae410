"""Print REPL code snippets (plots, server control, environment checks)."""

from __future__ import annotations

import logging

import click

from ..codegen import (
    DEFAULT_PACKAGES,
    PLOT_KINDS,
    generate_dependency_check_code,
    generate_monitor_code,
    generate_plot,
    generate_server_code,
    generate_setup_code,
    generate_simple_server_code,
    generate_status_check_code,
    generate_stop_code,
    is_valid_variable_name,
)

logger = logging.getLogger(__name__)

_CONFIG_KINDS = {
    "server": generate_server_code,
    "simple-server": generate_simple_server_code,
    "status": generate_status_check_code,
    "monitor": generate_monitor_code,
    "setup": generate_setup_code,
}
_KINDS = [*PLOT_KINDS, *_CONFIG_KINDS, "check-deps", "stop"]


@click.command("codegen")
@click.argument("kind", type=click.Choice(_KINDS))
@click.argument("variable", required=False)
@click.option(
    "--package",
    "packages",
    multiple=True,
    help="Package to check with 'check-deps' (repeatable)",
)
@click.pass_obj
def codegen_cmd(obj, kind: str, variable: str | None, packages: tuple[str, ...]):
    """Print Python code for KIND, ready to send to a REPL.

    Plot kinds (line, scatter, histogram, ascii) need the VARIABLE holding
    the data; it may be any expression, a plain name is only recommended.

    Examples:
        ssh-viz codegen line prices | xclip
        ssh-viz codegen check-deps --package scipy
    """
    if kind in PLOT_KINDS:
        if not variable:
            raise click.UsageError("No variable specified for plotting")
        if not is_valid_variable_name(variable):
            logger.warning(f"'{variable}' is not a plain variable name")
        code = generate_plot(kind, variable, obj.config)
    elif kind in _CONFIG_KINDS:
        code = _CONFIG_KINDS[kind](obj.config)
    elif kind == "check-deps":
        try:
            code = generate_dependency_check_code(packages or DEFAULT_PACKAGES)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--package") from exc
    else:
        code = generate_stop_code()
    click.echo(code)


__all__ = ["codegen_cmd"]
