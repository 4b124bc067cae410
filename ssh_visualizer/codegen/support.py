"""Helpers shared by the source-code generators."""

from __future__ import annotations

import keyword
import re

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MODULE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


def is_valid_variable_name(name: str | None) -> bool:
    """Return True when ``name`` is a plain (non-keyword) Python identifier."""
    if not name:
        return False
    return bool(IDENTIFIER_PATTERN.match(name)) and not keyword.iskeyword(name)


def is_valid_module_name(name: str | None) -> bool:
    return bool(name) and bool(MODULE_PATTERN.match(name))


def escape_python_string(value: str) -> str:
    """Escape ``value`` for embedding inside a quoted Python string literal."""
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("\n", "\\n")
    )


__all__ = ["escape_python_string", "is_valid_module_name", "is_valid_variable_name"]
