from unittest.mock import Mock, patch

import pytest
import requests

from ssh_visualizer.catalog import CatalogEntry
from ssh_visualizer.client import ServerUnavailableError, fetch_plots, fetch_status
from ssh_visualizer.config import build_config


@pytest.fixture
def mock_response():
    def _mock_response(payload):
        mock = Mock(spec=requests.Response)
        mock.json.return_value = payload
        mock.raise_for_status.return_value = None
        return mock

    return _mock_response


def test_fetch_status_uses_loopback_for_wildcard_host(mock_response):
    cfg = build_config({"web_server": {"host": "0.0.0.0", "port": 9100}})
    payload = {"status": "running", "plot_count": 3}
    with patch("ssh_visualizer.client.requests.get", return_value=mock_response(payload)) as get:
        assert fetch_status(cfg) == payload
    get.assert_called_once_with("http://localhost:9100/api/status", timeout=5)


def test_fetch_status_explicit_host(mock_response):
    cfg = build_config({"web_server": {"port": 9100}})
    with patch("ssh_visualizer.client.requests.get", return_value=mock_response({})) as get:
        fetch_status(cfg, host="plots.example", timeout=1)
    get.assert_called_once_with("http://plots.example:9100/api/status", timeout=1)


def test_fetch_plots_parses_entries(mock_response):
    item = {
        "name": "a.png",
        "html": "a.html",
        "image": "a.png",
        "modified": "2024-01-01 01:01",
        "size": "2KB",
    }
    with patch("ssh_visualizer.client.requests.get", return_value=mock_response([item])):
        entries = fetch_plots(build_config())
    assert entries == [CatalogEntry(**item)]


def test_connection_error_wrapped():
    error = requests.ConnectionError("refused")
    with patch("ssh_visualizer.client.requests.get", side_effect=error):
        with pytest.raises(ServerUnavailableError, match="Server not accessible"):
            fetch_status(build_config())


def test_http_error_wrapped(mock_response):
    response = mock_response({})
    response.raise_for_status.side_effect = requests.HTTPError("500")
    with patch("ssh_visualizer.client.requests.get", return_value=response):
        with pytest.raises(ServerUnavailableError):
            fetch_plots(build_config())


def test_against_live_server(config):
    from ssh_visualizer.server import PlotServer

    (config.output_dir / "live.png").write_bytes(b"png")
    server = PlotServer(config)
    server.bind()
    thread = server.start_background()
    try:
        status = fetch_status(config)
        assert status["plot_count"] == 1
        assert [e.name for e in fetch_plots(config)] == ["live.png"]
    finally:
        server.shutdown()
        thread.join(5)
