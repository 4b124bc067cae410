"""Shared pytest fixtures for ssh-visualizer tests."""

import socket
from pathlib import Path

import pytest

from ssh_visualizer.config import build_config


def free_port() -> int:
    """Return a TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def make_config(tmp_path: Path, **overrides):
    """Build a configuration rooted under ``tmp_path``.

    Args:
        tmp_path: pytest temporary directory
        **overrides: Nested overrides merged over the test defaults
    """
    data = {
        "output_dir": tmp_path / "plots",
        "web_server": {"host": "127.0.0.1", "port": free_port()},
    }
    return build_config({**data, **overrides})


@pytest.fixture
def make_cfg(tmp_path):
    """Fixture providing the make_config helper bound to tmp_path."""
    return lambda **overrides: make_config(tmp_path, **overrides)


@pytest.fixture
def config(tmp_path):
    cfg = make_config(tmp_path)
    cfg.output_dir.mkdir(parents=True)
    return cfg


@pytest.fixture
def plots_dir(config) -> Path:
    return config.output_dir


@pytest.fixture
def unused_port():
    return free_port()


@pytest.fixture(autouse=True)
def _no_proxy(monkeypatch):
    """Keep loopback requests away from any proxy configured in the environment."""
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY"):
        monkeypatch.delenv(var, raising=False)
        monkeypatch.delenv(var.lower(), raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")
