"""Catalog of plot artifacts in an output directory.

The catalog is recomputed from the filesystem on every call; nothing is
cached between requests. Each ``.png`` or ``.html`` file yields one
:class:`CatalogEntry` whose ``image`` and ``html`` fields cross-reference the
sibling of the pair. The sibling name is derived by swapping the suffix and
is produced even when the sibling file does not exist.

Filesystem problems never propagate: an unreadable or missing directory
produces an empty catalog, and a file that disappears between listing and
``stat`` is skipped.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

IMAGE_SUFFIX = ".png"
HTML_SUFFIX = ".html"
ARTIFACT_SUFFIXES = (IMAGE_SUFFIX, HTML_SUFFIX)
MODIFIED_FORMAT = "%Y-%m-%d %H:%M"


class CatalogEntry(BaseModel):
    """Wire shape of one ``/api/plots`` item."""

    model_config = ConfigDict(frozen=True)

    name: str
    html: str
    image: str
    modified: str
    size: str


def format_size(size: int) -> str:
    """Render ``size`` bytes as ``"<n>KB"`` above 1024 bytes, else ``"<n>B"``."""
    if size > 1024:
        return f"{size // 1024}KB"
    return f"{size}B"


def format_modified(mtime: float) -> str:
    return datetime.fromtimestamp(mtime).strftime(MODIFIED_FORMAT)


def is_artifact(filename: str) -> bool:
    return filename.endswith(ARTIFACT_SUFFIXES)


def sibling_names(filename: str) -> tuple[str, str]:
    """Return ``(html, image)`` names for an artifact filename."""
    if filename.endswith(HTML_SUFFIX):
        return filename, filename[: -len(HTML_SUFFIX)] + IMAGE_SUFFIX
    return filename[: -len(IMAGE_SUFFIX)] + HTML_SUFFIX, filename


def _artifact_files(directory: Path | str) -> list[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return [e for e in it if is_artifact(e.name) and e.is_file()]
    except OSError as exc:
        logger.warning(f"Error listing plots in {directory}: {exc}")
        return []


def list_artifacts(directory: Path | str) -> list[CatalogEntry]:
    """Return catalog entries for the artifacts in ``directory``.

    Order follows directory enumeration and is not guaranteed; callers that
    need a stable order should sort the result.
    """
    entries: list[CatalogEntry] = []
    for item in _artifact_files(directory):
        try:
            stat = item.stat()
        except OSError as exc:
            logger.debug(f"Skipping {item.name}: {exc}")
            continue
        html, image = sibling_names(item.name)
        entries.append(
            CatalogEntry(
                name=item.name,
                html=html,
                image=image,
                modified=format_modified(stat.st_mtime),
                size=format_size(stat.st_size),
            )
        )
    return entries


def count_artifacts(directory: Path | str) -> int:
    """Return the number of ``.png`` and ``.html`` files in ``directory``."""
    return len(_artifact_files(directory))


__all__ = [
    "ARTIFACT_SUFFIXES",
    "CatalogEntry",
    "count_artifacts",
    "format_modified",
    "format_size",
    "is_artifact",
    "list_artifacts",
    "sibling_names",
]
