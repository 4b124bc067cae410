"""Deterministic artifact filenames.

A filename is assembled as ``[owner_]base_name[_timestamp].extension``:

* ``owner`` is the OS user name when ``auto_save.team_prefix`` is enabled.
  The lookup is best effort; when it fails the prefix is dropped.
* ``timestamp`` is the wall-clock time of the naming call formatted
  ``YYYYMMDD_HHMMSS`` when ``auto_save.timestamp`` is enabled.

Names are not globally unique. Two calls within the same second with the same
user and flags yield the same name and, under the default ``overwrite``
collision policy, the second artifact replaces the first. The
``disambiguate`` policy appends ``_1``, ``_2``, ... until the name is free in
the target directory.
"""

from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import get_args

from .config import Extension, VisualizerConfig
from .paths import resolve_output_dir

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
EXTENSIONS: tuple[str, ...] = get_args(Extension)
IMAGE_EXTENSION: Extension = "png"
HTML_EXTENSION: Extension = "html"


def get_timestamp(now: datetime | None = None) -> str:
    """Return ``now`` (default: current local time) as ``YYYYMMDD_HHMMSS``."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def current_user() -> str:
    """Return the OS user name, or an empty string when it cannot be found."""
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError) as exc:
        logger.debug(f"User name lookup failed, dropping team prefix: {exc}")
        return ""


@dataclass(frozen=True)
class Artifact:
    """A named output unit: one file of an image/HTML pair."""

    base_name: str
    extension: Extension
    owner: str | None = None
    timestamp: str | None = None
    counter: int | None = None

    def __post_init__(self) -> None:
        if self.extension not in EXTENSIONS:
            raise ValueError(
                f"Unsupported artifact extension '{self.extension}'. "
                f"Expected one of: {', '.join(EXTENSIONS)}"
            )

    @property
    def stem(self) -> str:
        parts = [self.owner] if self.owner else []
        parts.append(self.base_name)
        if self.timestamp:
            parts.append(self.timestamp)
        if self.counter:
            parts.append(str(self.counter))
        return "_".join(parts)

    @property
    def filename(self) -> str:
        return f"{self.stem}.{self.extension}"

    def sibling(self, extension: Extension) -> Artifact:
        """Return the artifact sharing this one's stem with ``extension``."""
        return replace(self, extension=extension)

    @classmethod
    def from_config(
        cls,
        base_name: str,
        extension: Extension,
        config: VisualizerConfig,
        *,
        now: datetime | None = None,
        user: str | None = None,
    ) -> Artifact:
        owner = None
        if config.auto_save.team_prefix:
            owner = (user if user is not None else current_user()) or None
        timestamp = get_timestamp(now) if config.auto_save.timestamp else None
        return cls(base_name, extension, owner=owner, timestamp=timestamp)


def _first_free(artifacts: list[Artifact], directory: Path) -> list[Artifact]:
    """Bump the counter until no artifact in the group exists in ``directory``."""
    counter = 0
    candidates = artifacts
    while any((directory / a.filename).exists() for a in candidates):
        counter += 1
        candidates = [replace(a, counter=counter) for a in artifacts]
    return candidates


def _apply_policy(
    artifacts: list[Artifact],
    config: VisualizerConfig,
    directory: Path | str | None,
) -> list[Artifact]:
    if config.auto_save.on_collision != "disambiguate":
        return artifacts
    target = Path(directory) if directory is not None else resolve_output_dir(config)
    return _first_free(artifacts, target)


def generate_filename(
    base_name: str,
    extension: Extension,
    config: VisualizerConfig,
    *,
    now: datetime | None = None,
    user: str | None = None,
    directory: Path | str | None = None,
) -> str:
    """Return the artifact filename for ``base_name`` and ``extension``.

    Args:
        base_name: Name stem, e.g. ``"plot"``.
        extension: One of ``png``, ``html``, ``svg``.
        config: Configuration supplying the ``auto_save`` flags.
        now: Clock override; defaults to the current time.
        user: User name override; defaults to the OS user lookup.
        directory: Directory checked by the ``disambiguate`` collision
            policy; defaults to the resolved output directory.
    """
    artifact = Artifact.from_config(base_name, extension, config, now=now, user=user)
    return _apply_policy([artifact], config, directory)[0].filename


def artifact_pair(
    base_name: str,
    config: VisualizerConfig,
    *,
    now: datetime | None = None,
    user: str | None = None,
    directory: Path | str | None = None,
) -> tuple[str, str]:
    """Return ``(image_filename, html_filename)`` sharing a single stem.

    The clock and user are read once so both halves of the pair always agree.
    """
    image = Artifact.from_config(
        base_name, IMAGE_EXTENSION, config, now=now, user=user
    )
    image, html = _apply_policy(
        [image, image.sibling(HTML_EXTENSION)], config, directory
    )
    return image.filename, html.filename


__all__ = [
    "Artifact",
    "EXTENSIONS",
    "TIMESTAMP_FORMAT",
    "artifact_pair",
    "current_user",
    "generate_filename",
    "get_timestamp",
]
