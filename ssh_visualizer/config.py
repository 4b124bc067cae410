"""Configuration models for ssh-visualizer.

The configuration is an immutable value passed into every call (naming,
directory resolution, server start). It is assembled from defaults, an
optional YAML file and caller overrides, then validated as a whole:

Example YAML:
  output_dir: /tmp/nvim_plots
  shared_dir: /mnt/team/plots
  web_server:
    host: 0.0.0.0
    port: 8888
    cors_enabled: true
  auto_save:
    timestamp: true
    team_prefix: true
    on_collision: overwrite

Validation failures are reported as a list of human readable messages
(``"web_server.port must be between 1024 and 65535"``); a configuration that
fails validation is never partially applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

Extension = Literal["png", "html", "svg"]
CollisionPolicy = Literal["overwrite", "disambiguate"]

DEFAULT_OUTPUT_DIR = Path("/tmp/nvim_plots")
PORT_RANGE = (1024, 65535)
ASCII_WIDTH_RANGE = (20, 200)
ASCII_HEIGHT_RANGE = (5, 100)


class ConfigError(ValueError):
    """Raised when a configuration fails validation.

    The individual messages are available on :attr:`errors`.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Invalid configuration:\n" + "\n".join(f" - {e}" for e in self.errors)
        )


def _check_range(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"must be between {low} and {high}")
    return value


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AutoSaveConfig(_Section):
    enabled: bool = True
    formats: tuple[Extension, ...] = ("png", "html")
    timestamp: bool = True
    team_prefix: bool = False
    on_collision: CollisionPolicy = "overwrite"


class WebServerConfig(_Section):
    host: str = "0.0.0.0"
    port: int = 8888
    cors_enabled: bool = True
    auto_start: bool = False

    @field_validator("port")
    @classmethod
    def _port_in_range(cls, value: int) -> int:
        return _check_range(value, PORT_RANGE)


class AsciiConfig(_Section):
    width: int = 80
    height: int = 24
    use_unicode: bool = True
    style: Literal["braille", "block", "ascii"] = "braille"

    @field_validator("width")
    @classmethod
    def _width_in_range(cls, value: int) -> int:
        return _check_range(value, ASCII_WIDTH_RANGE)

    @field_validator("height")
    @classmethod
    def _height_in_range(cls, value: int) -> int:
        return _check_range(value, ASCII_HEIGHT_RANGE)


class MatplotlibConfig(_Section):
    backend: str = "Agg"
    dpi: int = 150
    figsize: tuple[int, int] = (10, 6)
    style: str = "seaborn-v0_8"


class VisualizerConfig(_Section):
    """Complete plugin configuration."""

    output_dir: Path = DEFAULT_OUTPUT_DIR
    shared_dir: Path | None = None
    web_server: WebServerConfig = WebServerConfig()
    ascii: AsciiConfig = AsciiConfig()
    matplotlib: MatplotlibConfig = MatplotlibConfig()
    auto_save: AutoSaveConfig = AutoSaveConfig()

    @field_validator("output_dir", mode="before")
    @classmethod
    def _output_dir_required(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("is required")
        return value

    @field_validator("shared_dir", mode="before")
    @classmethod
    def _blank_shared_dir(cls, value: Any) -> Any:
        # An empty string disables the shared directory
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("output_dir", "shared_dir")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None


# Validation ---------------------------------------------------------------
def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "is invalid"))
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]
    return f"{location} {message}" if location else message


def _errors_from(exc: ValidationError) -> list[str]:
    return [_format_error(err) for err in exc.errors()]


def validate_config(data: VisualizerConfig | Mapping[str, Any]) -> list[str]:
    """Return validation messages for ``data`` (empty list when valid)."""
    if isinstance(data, VisualizerConfig):
        return []
    try:
        VisualizerConfig.model_validate(dict(data))
    except ValidationError as exc:
        return _errors_from(exc)
    return []


# Merging ------------------------------------------------------------------
def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def build_config(
    overrides: Mapping[str, Any] | None = None,
    base: VisualizerConfig | None = None,
) -> VisualizerConfig:
    """Merge ``overrides`` into ``base`` and validate the result.

    Nested sections are merged key by key; scalar values from ``overrides``
    replace those in ``base``. Raises :class:`ConfigError` listing every
    problem when the merged configuration is invalid.
    """
    base = base or VisualizerConfig()
    if not overrides:
        return base
    merged = _deep_merge(base.model_dump(), overrides)
    try:
        return VisualizerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(_errors_from(exc)) from exc


def load_config(
    path: Path | str | None = None, overrides: Mapping[str, Any] | None = None
) -> VisualizerConfig:
    """Load a YAML configuration file and apply ``overrides`` on top of it."""
    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).expanduser()
        try:
            with open(config_path, encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except FileNotFoundError as exc:
            raise ConfigError([f"config file not found: {config_path}"]) from exc
        except OSError as exc:
            raise ConfigError([f"cannot read config file {config_path}: {exc}"]) from exc
        except yaml.YAMLError as exc:
            raise ConfigError([f"{config_path}: invalid YAML ({exc})"]) from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError([f"{config_path}: top level must be a mapping"])
        data = loaded
    if overrides:
        data = _deep_merge(data, overrides)
    return build_config(data)


__all__ = [
    "AsciiConfig",
    "AutoSaveConfig",
    "CollisionPolicy",
    "ConfigError",
    "Extension",
    "MatplotlibConfig",
    "VisualizerConfig",
    "WebServerConfig",
    "build_config",
    "load_config",
    "validate_config",
]
