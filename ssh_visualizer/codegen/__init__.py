"""Source-code generators for the REPL side of a plotting session.

Every generator returns a Python source string; nothing here executes code.
Hand the result to an :class:`~ssh_visualizer.repl.ExecutionChannel`.
"""

from .plots import (
    PLOT_KINDS,
    generate_ascii_plot,
    generate_histogram,
    generate_line_plot,
    generate_plot,
    generate_scatter_plot,
)
from .server import (
    generate_monitor_code,
    generate_server_code,
    generate_simple_server_code,
    generate_status_check_code,
    generate_stop_code,
)
from .setup import (
    DEFAULT_PACKAGES,
    check_python_package,
    generate_dependency_check_code,
    generate_setup_code,
    parse_package_check,
)
from .support import escape_python_string, is_valid_variable_name

__all__ = [
    "DEFAULT_PACKAGES",
    "PLOT_KINDS",
    "check_python_package",
    "escape_python_string",
    "generate_ascii_plot",
    "generate_dependency_check_code",
    "generate_histogram",
    "generate_line_plot",
    "generate_monitor_code",
    "generate_plot",
    "generate_scatter_plot",
    "generate_server_code",
    "generate_setup_code",
    "generate_simple_server_code",
    "generate_status_check_code",
    "generate_stop_code",
    "is_valid_variable_name",
    "parse_package_check",
]
