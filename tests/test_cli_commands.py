import json
import logging
import os
import socket
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ssh_visualizer.cli import ssh_viz
from ssh_visualizer.client import ServerUnavailableError
from ssh_visualizer.server import PlotServer, PortInUseError


def _write_config(tmp_path: Path, **extra) -> Path:
    path = tmp_path / "viz.yml"
    lines = [f"output_dir: {tmp_path / 'plots'}"]
    lines += [f"{key}: {value}" for key, value in extra.items()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def runner():
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    yield CliRunner()
    # Drop the stream handler bound to the runner's (now closed) stderr
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler and handler not in before:
            root.removeHandler(handler)
    root.setLevel(level)


def test_outdir(runner, tmp_path):
    cfg = _write_config(tmp_path)
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "outdir"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(tmp_path / "plots")


def test_outdir_prefers_existing_shared_dir(runner, tmp_path):
    (tmp_path / "team").mkdir()
    cfg = _write_config(tmp_path, shared_dir=tmp_path / "team")
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "outdir"])
    assert result.output.strip() == str(tmp_path / "team")


def test_config_from_environment(runner, tmp_path):
    cfg = _write_config(tmp_path)
    result = runner.invoke(ssh_viz, ["outdir"], env={"SSH_VIZ_CONFIG": str(cfg)})
    assert result.output.strip() == str(tmp_path / "plots")


def test_invalid_config_exits(runner, tmp_path):
    cfg = tmp_path / "bad.yml"
    cfg.write_text("web_server:\n  port: 80\n", encoding="utf-8")
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "outdir"])
    assert result.exit_code == 1
    assert "web_server.port must be between 1024 and 65535" in result.output


def test_unreadable_config_exits(runner, tmp_path):
    cfg = _write_config(tmp_path)
    denied = PermissionError(13, "Permission denied")
    with patch("ssh_visualizer.config.open", side_effect=denied, create=True):
        result = runner.invoke(ssh_viz, ["--config", str(cfg), "outdir"])
    assert result.exit_code == 1
    assert "cannot read config file" in result.output


def test_validate_ok(runner, tmp_path):
    cfg = _write_config(tmp_path)
    result = runner.invoke(ssh_viz, ["validate", str(cfg)])
    assert result.exit_code == 0, result.output
    assert "Configuration OK" in result.output


def test_validate_reports_every_error(runner, tmp_path):
    cfg = tmp_path / "bad.yml"
    cfg.write_text(
        "output_dir: ''\nweb_server:\n  port: 70000\n", encoding="utf-8"
    )
    result = runner.invoke(ssh_viz, ["validate", str(cfg)])
    assert result.exit_code == 1
    assert "Validation FAILED" in result.output
    assert " - output_dir is required" in result.output
    assert " - web_server.port must be between 1024 and 65535" in result.output


def test_filename(runner, tmp_path):
    cfg = _write_config(tmp_path)
    cfg.write_text(
        cfg.read_text(encoding="utf-8") + "auto_save:\n  timestamp: false\n",
        encoding="utf-8",
    )
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "filename", "scan", "svg"])
    assert result.output.strip() == "scan.svg"
    result = runner.invoke(
        ssh_viz, ["--config", str(cfg), "filename", "scan", "png", "--pair"]
    )
    assert result.output.split() == ["scan.png", "scan.html"]


def test_filename_rejects_unknown_extension(runner):
    result = runner.invoke(ssh_viz, ["filename", "scan", "jpg"])
    assert result.exit_code == 2


def test_list_empty(runner, tmp_path):
    cfg = _write_config(tmp_path)
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "list"])
    assert result.exit_code == 0
    assert "No plots found" in result.output


def test_list_newest_first(runner, tmp_path):
    plots = tmp_path / "plots"
    plots.mkdir()
    for name, mtime in [("old.png", 1_600_000_000), ("new.html", 1_700_000_000)]:
        (plots / name).write_bytes(b"x" * 1500)
        os.utime(plots / name, (mtime, mtime))
    cfg = _write_config(tmp_path)
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "list"])
    lines = result.output.strip().splitlines()
    assert lines[0].endswith("new.html")
    assert lines[1].endswith("old.png")
    assert "1KB" in lines[0]

    result = runner.invoke(ssh_viz, ["--config", str(cfg), "list", "--json"])
    data = json.loads(result.output)
    assert [d["name"] for d in data] == ["new.html", "old.png"]
    assert data[1]["html"] == "old.html"


def test_status_reports_server(runner):
    payload = {"status": "running", "plot_count": 4, "directory": "/srv/plots"}
    with patch("ssh_visualizer.cli.catalog.fetch_status", return_value=payload):
        result = runner.invoke(ssh_viz, ["status"])
    assert result.exit_code == 0
    assert "4 plots available" in result.output
    assert "/srv/plots" in result.output


def test_status_unreachable(runner):
    error = ServerUnavailableError("Server not accessible at http://localhost:8888")
    with patch("ssh_visualizer.cli.catalog.fetch_status", side_effect=error):
        result = runner.invoke(ssh_viz, ["status"])
    assert result.exit_code == 1
    assert "Server not accessible" in result.output


def test_serve_applies_overrides(runner, tmp_path):
    cfg = _write_config(tmp_path)

    def _bound(config, on_ready=None):
        on_ready(PlotServer(config))

    with patch("ssh_visualizer.cli.serve.run_server", side_effect=_bound) as run:
        result = runner.invoke(
            ssh_viz,
            ["--config", str(cfg), "serve", "--port", "9123", "--no-cors"],
        )
    assert result.exit_code == 0, result.output
    config = run.call_args.args[0]
    assert config.web_server.port == 9123
    assert config.web_server.cors_enabled is False
    assert config.output_dir == tmp_path / "plots"
    assert "Plot server running at http://0.0.0.0:9123" in result.output


def test_serve_port_from_environment(runner):
    with patch("ssh_visualizer.cli.serve.run_server") as run:
        runner.invoke(ssh_viz, ["serve"], env={"SSH_VIZ_PORT": "9555"})
    assert run.call_args.args[0].web_server.port == 9555


def test_serve_rejects_bad_port(runner):
    with patch("ssh_visualizer.cli.serve.run_server") as run:
        result = runner.invoke(ssh_viz, ["serve", "--port", "80"])
    assert result.exit_code == 1
    assert "must be between 1024 and 65535" in result.output
    run.assert_not_called()


def test_serve_port_in_use(runner):
    error = PortInUseError("0.0.0.0", 8888)
    with patch("ssh_visualizer.cli.serve.run_server", side_effect=error):
        result = runner.invoke(ssh_viz, ["serve"])
    assert result.exit_code == 2
    assert "Port 8888 is already in use" in result.output


def test_serve_port_in_use_reports_only_the_conflict(runner, tmp_path, unused_port):
    cfg = _write_config(tmp_path)
    with socket.socket() as listener:
        listener.bind(("127.0.0.1", unused_port))
        listener.listen()
        result = runner.invoke(
            ssh_viz,
            [
                "--config",
                str(cfg),
                "serve",
                "--host",
                "127.0.0.1",
                "--port",
                str(unused_port),
            ],
        )
    assert result.exit_code == 2
    assert f"Port {unused_port} is already in use" in result.output
    assert "Starting plot server" in result.output
    assert "Plot server running" not in result.output


def test_serve_interrupted(runner):
    with patch("ssh_visualizer.cli.serve.run_server", side_effect=KeyboardInterrupt):
        result = runner.invoke(ssh_viz, ["serve"])
    assert result.exit_code == 0
    assert "Server stopped" in result.output


def test_codegen_plot(runner, tmp_path):
    cfg = _write_config(tmp_path)
    result = runner.invoke(ssh_viz, ["--config", str(cfg), "codegen", "scatter", "xs"])
    assert result.exit_code == 0, result.output
    assert "data = np.array(xs)" in result.output
    assert repr(str(tmp_path / "plots")) in result.output


def test_codegen_plot_requires_variable(runner):
    result = runner.invoke(ssh_viz, ["codegen", "line"])
    assert result.exit_code == 2
    assert "No variable specified" in result.output


def test_codegen_server_kinds(runner):
    assert "PlotServer" in runner.invoke(ssh_viz, ["codegen", "server"]).output
    assert "os._exit(0)" in runner.invoke(ssh_viz, ["codegen", "stop"]).output
    result = runner.invoke(ssh_viz, ["codegen", "check-deps", "--package", "scipy"])
    assert "['scipy']" in result.output


def test_codegen_check_deps_rejects_bad_name(runner):
    result = runner.invoke(ssh_viz, ["codegen", "check-deps", "--package", "a b"])
    assert result.exit_code == 2


def test_info_json(runner, tmp_path):
    cfg = _write_config(tmp_path)
    with patch("ssh_visualizer.diagnostics.get_local_ip", return_value="10.1.1.1"):
        result = runner.invoke(ssh_viz, ["--config", str(cfg), "info", "--json"])
    assert result.exit_code == 0, result.output
    info = json.loads(result.output)
    assert info["local_ip"] == "10.1.1.1"
    assert info["resolved_dir"] == str(tmp_path / "plots")


def test_version(runner):
    result = runner.invoke(ssh_viz, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip()
