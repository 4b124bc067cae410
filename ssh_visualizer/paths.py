"""Output directory resolution.

Rules
=====
* ``shared_dir`` wins when it is configured *and* currently exists as a
  directory; otherwise ``output_dir`` is used.
* The choice is recomputed on every call. A shared mount that appears or
  disappears mid-session changes the result of the next call.
* :func:`resolve_output_dir` performs no filesystem changes and never raises;
  a missing ``output_dir`` only surfaces when something writes there.
  Creating directories is an explicit setup step, see
  :func:`ensure_directories`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import VisualizerConfig

logger = logging.getLogger(__name__)


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:  # pragma: no cover - permission errors on stat
        return False


def resolve_output_dir(config: VisualizerConfig) -> Path:
    """Return the directory plot artifacts are written to and served from."""
    shared = config.shared_dir
    if shared is not None and _is_dir(shared):
        return shared
    return config.output_dir


def ensure_directories(config: VisualizerConfig) -> VisualizerConfig:
    """Create the configured directories.

    ``output_dir`` is always created. Failure to create ``shared_dir`` is not
    fatal: a warning is logged and a copy of ``config`` with the shared
    directory disabled is returned.
    """
    config.output_dir.mkdir(parents=True, exist_ok=True)
    shared = config.shared_dir
    if shared is None or _is_dir(shared):
        return config
    try:
        shared.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning(f"Could not create shared directory {shared}: {exc}")
        return config.model_copy(update={"shared_dir": None})
    return config


__all__ = ["ensure_directories", "resolve_output_dir"]
