"""Tests for the configuration management subsystem."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from commit_mirror.config import Config, parse_duration, parse_size


def test_config_defaults() -> None:
    """Verifies that the configuration initializes with the historical defaults."""
    conf = Config()
    assert conf.source.branch == "main"
    assert conf.source.remote == "origin"
    assert conf.mirror.order == "chronological"
    assert conf.mirror.key == "basename"
    assert conf.watch.debounce == 1.0
    assert conf.watch.run_on_start is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (2, 2.0),
        (0.25, 0.25),
        ("500ms", 0.5),
        ("1s", 1.0),
        ("2 sec", 2.0),
        ("1m", 60.0),
    ],
)
def test_parse_duration(raw: int | float | str, expected: float) -> None:
    assert parse_duration(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["soon", "-1", "1h", ""])
def test_parse_duration_rejects_garbage(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_parse_size() -> None:
    assert parse_size("1MB") == 1024**2
    assert parse_size(42) == 42


def test_config_load_merges_layers(tmp_path: Path, mocker: MagicMock) -> None:
    """Verifies the cascading merge logic (Defaults -> Global -> Local).

    Args:
        tmp_path (Path): Pytest fixture for a temporary directory.
        mocker (MagicMock): Pytest fixture for mocking.
    """
    global_config_path = tmp_path / "global_config.toml"
    global_config_path.write_text(
        '[source]\nremote = "upstream"\nbranch = "develop"\n'
        '[watch]\ndebounce = "2s"\n'
    )
    mocker.patch("commit_mirror.config.CONFIG_FILE", global_config_path)

    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    (repo_path / "commit-mirror.toml").write_text(
        '[source]\nbranch = "trunk"\n[mirror]\nkey = "path"\n'
    )

    conf = Config.load(repo_path)

    assert conf.source.remote == "upstream"  # From global
    assert conf.source.branch == "trunk"  # Local overrides global
    assert conf.watch.debounce == 2.0
    assert conf.mirror.key == "path"

    # Local overrides must not leak into the cached global layer
    assert Config.load().source.branch == "develop"


def test_config_load_from_pyproject(tmp_path: Path) -> None:
    """Verifies that [tool.commit-mirror] is honoured when no local file exists."""
    (tmp_path / "pyproject.toml").write_text(
        '[tool.commit-mirror.mirror]\norder = "backend"\n'
    )

    conf = Config.load(tmp_path)
    assert conf.mirror.order == "backend"


def test_invalid_values_fall_back_to_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that bad values and unknown keys warn instead of failing."""
    (tmp_path / "commit-mirror.toml").write_text(
        '[mirror]\norder = "random"\ncolour = "blue"\n'
        "[watch]\nrun_on_start = 3\n"
    )

    conf = Config.load(tmp_path)

    assert conf.mirror.order == "chronological"
    assert conf.watch.run_on_start is True
    assert "Unknown config keys in [mirror]: colour" in caplog.text
    assert "Config error in [mirror].order" in caplog.text


def test_syntax_error_is_logged(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "commit-mirror.toml").write_text("[source\nbranch = ")

    conf = Config.load(tmp_path)

    assert conf.source.branch == "main"
    assert "Config syntax error" in caplog.text
