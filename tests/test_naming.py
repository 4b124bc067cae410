from datetime import datetime
from unittest.mock import patch

import pytest

from ssh_visualizer.config import build_config
from ssh_visualizer.naming import (
    Artifact,
    artifact_pair,
    current_user,
    generate_filename,
    get_timestamp,
)

FIXED_NOW = datetime(2024, 1, 1, 1, 1, 30)


def _config(**auto_save):
    return build_config({"auto_save": auto_save})


def test_timestamp_format():
    assert get_timestamp(FIXED_NOW) == "20240101_010130"


def test_default_name_has_timestamp_only():
    name = generate_filename("plot", "png", _config(), now=FIXED_NOW)
    assert name == "plot_20240101_010130.png"


def test_team_prefix_added():
    cfg = _config(team_prefix=True)
    assert (
        generate_filename("plot", "html", cfg, now=FIXED_NOW, user="alice")
        == "alice_plot_20240101_010130.html"
    )


def test_flags_disabled_gives_bare_name():
    cfg = _config(timestamp=False, team_prefix=False)
    assert generate_filename("plot", "svg", cfg) == "plot.svg"


def test_deterministic_for_fixed_inputs():
    cfg = _config(team_prefix=True)
    names = {
        generate_filename("plot", "png", cfg, now=FIXED_NOW, user="bob")
        for _ in range(5)
    }
    assert names == {"bob_plot_20240101_010130.png"}


def test_empty_user_drops_prefix():
    cfg = _config(team_prefix=True)
    assert (
        generate_filename("plot", "png", cfg, now=FIXED_NOW, user="")
        == "plot_20240101_010130.png"
    )


def test_user_lookup_failure_drops_prefix():
    cfg = _config(team_prefix=True, timestamp=False)
    with patch("ssh_visualizer.naming.getpass.getuser", side_effect=KeyError("uid")):
        assert current_user() == ""
        assert generate_filename("plot", "png", cfg) == "plot.png"


def test_unsupported_extension_rejected():
    with pytest.raises(ValueError, match="Unsupported artifact extension"):
        generate_filename("plot", "jpg", _config())  # type: ignore[arg-type]


def test_pair_shares_stem():
    cfg = _config(team_prefix=True)
    image, html = artifact_pair("plot", cfg, now=FIXED_NOW, user="carol")
    assert image == "carol_plot_20240101_010130.png"
    assert html == "carol_plot_20240101_010130.html"


def test_pair_reads_clock_once():
    ticks = iter([datetime(2024, 1, 1, 0, 0, 59), datetime(2024, 1, 1, 0, 1, 0)])

    class _Clock(datetime):
        @classmethod
        def now(cls, tz=None):
            return next(ticks)

    with patch("ssh_visualizer.naming.datetime", _Clock):
        image, html = artifact_pair("plot", _config())
    assert image[:-4] == html[:-5]


def test_overwrite_policy_reuses_existing_name(tmp_path):
    cfg = _config(timestamp=False)
    (tmp_path / "plot.png").write_bytes(b"old")
    assert generate_filename("plot", "png", cfg, directory=tmp_path) == "plot.png"


def test_disambiguate_policy_appends_counter(tmp_path):
    cfg = _config(timestamp=False, on_collision="disambiguate")
    assert generate_filename("plot", "png", cfg, directory=tmp_path) == "plot.png"
    (tmp_path / "plot.png").write_bytes(b"1")
    assert generate_filename("plot", "png", cfg, directory=tmp_path) == "plot_1.png"
    (tmp_path / "plot_1.png").write_bytes(b"2")
    assert generate_filename("plot", "png", cfg, directory=tmp_path) == "plot_2.png"


def test_disambiguate_keeps_pair_together(tmp_path):
    cfg = _config(timestamp=False, on_collision="disambiguate")
    # Only the HTML half exists; the image must still move to the free stem
    (tmp_path / "plot.html").write_text("", encoding="utf-8")
    assert artifact_pair("plot", cfg, directory=tmp_path) == ("plot_1.png", "plot_1.html")


def test_artifact_sibling():
    art = Artifact("plot", "png", owner="dan", timestamp="20240101_010130")
    assert art.sibling("html").filename == "dan_plot_20240101_010130.html"
