"""Plotting environment setup and dependency checks run inside the REPL."""

from __future__ import annotations

from collections.abc import Iterable
from string import Template

from ..config import VisualizerConfig
from .support import escape_python_string, is_valid_module_name

__all__ = [
    "DEFAULT_PACKAGES",
    "check_python_package",
    "generate_dependency_check_code",
    "generate_setup_code",
    "parse_package_check",
]

DEFAULT_PACKAGES = ("matplotlib", "numpy")

AVAILABLE_MARKER = "PACKAGE_AVAILABLE:"
MISSING_MARKER = "PACKAGE_MISSING:"

_SETUP = Template(
    """\
# ssh-viz plotting setup
import matplotlib
matplotlib.use($backend)
import matplotlib.pyplot as plt
import numpy as np
import os

plt.rcParams['figure.figsize'] = [$fig_w, $fig_h]
plt.rcParams['figure.dpi'] = $dpi
plt.rcParams['savefig.dpi'] = $dpi

try:
    plt.style.use($style)
except (OSError, ValueError):
    print("Style $style_name not available, using matplotlib defaults")

os.makedirs($output_dir, exist_ok=True)

print("ssh-viz plotting environment ready")
"""
)

_PACKAGE_CHECK = Template(
    """\
try:
    import $package
    print("${available}$package")
except ImportError:
    print("${missing}$package")
"""
)

_DEPENDENCY_CHECK = Template(
    """\
import importlib

packages = $packages
missing = []
for pkg in packages:
    try:
        importlib.import_module(pkg)
    except ImportError:
        missing.append(pkg)

if missing:
    print(f"Missing Python packages: {', '.join(missing)}")
    print("Install with: pip install " + " ".join(missing))
else:
    print("Python dependencies satisfied")
"""
)


def _require_module_name(name: str) -> str:
    if not is_valid_module_name(name):
        raise ValueError(f"Invalid Python package name: {name!r}")
    return name


def generate_setup_code(config: VisualizerConfig) -> str:
    mpl = config.matplotlib
    return _SETUP.substitute(
        backend=repr(mpl.backend),
        fig_w=mpl.figsize[0],
        fig_h=mpl.figsize[1],
        dpi=mpl.dpi,
        style=repr(mpl.style),
        style_name=escape_python_string(mpl.style),
        output_dir=repr(str(config.output_dir)),
    )


def check_python_package(package_name: str) -> str:
    """Code printing ``PACKAGE_AVAILABLE:<name>`` or ``PACKAGE_MISSING:<name>``."""
    return _PACKAGE_CHECK.substitute(
        package=_require_module_name(package_name),
        available=AVAILABLE_MARKER,
        missing=MISSING_MARKER,
    )


def generate_dependency_check_code(packages: Iterable[str] = DEFAULT_PACKAGES) -> str:
    names = [_require_module_name(p) for p in packages]
    return _DEPENDENCY_CHECK.substitute(packages=repr(names))


def parse_package_check(output: str) -> dict[str, bool]:
    """Map package name to availability from :func:`check_python_package` output."""
    result: dict[str, bool] = {}
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(AVAILABLE_MARKER):
            result[line[len(AVAILABLE_MARKER) :]] = True
        elif line.startswith(MISSING_MARKER):
            result[line[len(MISSING_MARKER) :]] = False
    return result
