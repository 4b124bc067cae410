import logging
from unittest.mock import Mock

from ssh_visualizer.repl import DEFAULT_SESSION, InProcessChannel, send_to_repl


def test_submit_runs_in_persistent_namespace():
    channel = InProcessChannel()
    assert channel.submit("x = 21")
    assert channel.submit("y = x * 2")
    assert channel.wait(timeout=5)
    assert channel.namespace()["y"] == 42


def test_sessions_are_isolated():
    channel = InProcessChannel()
    channel.open_session("other")
    assert channel.sessions == sorted([DEFAULT_SESSION, "other"])
    channel.submit("value = 'default'")
    channel.submit("value = 'other'", session="other")
    channel.wait(timeout=5)
    channel.wait("other", timeout=5)
    assert channel.namespace()["value"] == "default"
    assert channel.namespace("other")["value"] == "other"


def test_unknown_session_rejected(caplog):
    channel = InProcessChannel(open_default=False)
    with caplog.at_level(logging.WARNING, logger="ssh_visualizer.repl"):
        assert channel.submit("x = 1") is False
    assert "No active REPL session" in caplog.text


def test_syntax_error_rejected_before_running():
    channel = InProcessChannel()
    assert channel.submit("def broken(:") is False


def test_runtime_error_logged(caplog):
    channel = InProcessChannel()
    with caplog.at_level(logging.ERROR, logger="ssh_visualizer.repl"):
        assert channel.submit("1 / 0") is True
        assert channel.wait(timeout=5)
    assert "ZeroDivisionError: division by zero" in caplog.text


def test_closed_session_rejects_code():
    channel = InProcessChannel()
    channel.close_session()
    assert channel.sessions == []
    assert channel.submit("x = 1") is False


def test_send_without_channel(caplog):
    with caplog.at_level(logging.ERROR, logger="ssh_visualizer.repl"):
        assert send_to_repl(None, "x = 1") is False
    assert "No execution channel available" in caplog.text


def test_send_reports_channel_os_error():
    channel = Mock()
    channel.submit.side_effect = OSError("pipe closed")
    assert send_to_repl(channel, "x = 1", "python") is False


def test_send_passes_session_through():
    channel = Mock()
    channel.submit.return_value = True
    assert send_to_repl(channel, "x = 1", "ipython") is True
    channel.submit.assert_called_once_with("x = 1", "ipython")
