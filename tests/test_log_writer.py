"""Tests for the dedup log writer."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from commit_mirror.errors import LogWriteError
from commit_mirror.log_writer import LogWriter
from commit_mirror.models import Commit

hashes = st.text(alphabet="0123456789abcdef", min_size=40, max_size=40)
messages = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\r\n"),
    max_size=80,
)


def _commit(commit_hash: str, message: str = "fix bug") -> Commit:
    return Commit(commit_hash, message, "Ada", "Mon Jan 1 10:00:00 2024 +0000")


def test_creates_log_on_first_write(tmp_path: Path) -> None:
    writer = LogWriter(tmp_path)
    result = writer.append_if_absent("x.txt", _commit("a" * 40))

    assert result.written
    assert result.created
    assert (tmp_path / "x.txt").read_text() == _commit("a" * 40).to_record()


def test_appends_new_hash_and_skips_known_hash(tmp_path: Path) -> None:
    writer = LogWriter(tmp_path)
    first, second = _commit("a" * 40, "one"), _commit("b" * 40, "two")

    writer.append_if_absent("x.txt", first)
    result = writer.append_if_absent("x.txt", second)
    assert result.written
    assert not result.created
    assert result.previous_size == len(first.to_record().encode())

    before = (tmp_path / "x.txt").read_bytes()
    again = writer.append_if_absent("x.txt", first)

    assert not again.written
    assert (tmp_path / "x.txt").read_bytes() == before
    assert before.decode() == first.to_record() + second.to_record()


def test_hash_quoted_in_message_is_not_a_duplicate(tmp_path: Path) -> None:
    """Verifies that only the hash line counts, not a hash mentioned in a message."""
    writer = LogWriter(tmp_path)
    target = "c" * 40
    writer.append_if_absent("x.txt", _commit("d" * 40, f"Revert {target}"))

    assert not writer.contains("x.txt", target)
    assert writer.append_if_absent("x.txt", _commit(target)).written


def test_nested_names_create_directories(tmp_path: Path) -> None:
    writer = LogWriter(tmp_path)
    writer.append_if_absent("src/pkg/mod.py", _commit("e" * 40))
    assert (tmp_path / "src" / "pkg" / "mod.py").is_file()


def test_rollback_removes_created_file(tmp_path: Path) -> None:
    writer = LogWriter(tmp_path)
    result = writer.append_if_absent("x.txt", _commit("a" * 40))

    writer.rollback(result)

    assert not (tmp_path / "x.txt").exists()


def test_rollback_truncates_appended_block(tmp_path: Path) -> None:
    writer = LogWriter(tmp_path)
    writer.append_if_absent("x.txt", _commit("a" * 40))
    before = (tmp_path / "x.txt").read_bytes()

    result = writer.append_if_absent("x.txt", _commit("b" * 40))
    writer.rollback(result)

    assert (tmp_path / "x.txt").read_bytes() == before
    assert not writer.contains("x.txt", "b" * 40)


def test_rollback_of_noop_is_noop(tmp_path: Path) -> None:
    writer = LogWriter(tmp_path)
    writer.append_if_absent("x.txt", _commit("a" * 40))
    before = (tmp_path / "x.txt").read_bytes()

    writer.rollback(writer.append_if_absent("x.txt", _commit("a" * 40)))

    assert (tmp_path / "x.txt").read_bytes() == before


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture], max_examples=50)
@given(
    entries=st.lists(st.tuples(hashes, messages), min_size=1, max_size=8),
    repeats=st.integers(min_value=1, max_value=3),
)
def test_each_hash_recorded_exactly_once(
    tmp_path_factory, entries: list[tuple[str, str]], repeats: int
) -> None:
    """
    Property: However often the same commits are offered, the log holds exactly
    one block per distinct hash, in first-seen order.
    """
    target = tmp_path_factory.mktemp("log")
    writer = LogWriter(target)

    for _ in range(repeats):
        for commit_hash, message in entries:
            writer.append_if_absent("log.txt", _commit(commit_hash, message))

    lines = (target / "log.txt").read_text(encoding="utf-8").split("\n")
    recorded = [line for line in lines if line.startswith("Commit Hash: ")]

    expected = list(dict.fromkeys(h for h, _ in entries))
    assert recorded == [f"Commit Hash: {h}" for h in expected]


def test_directory_in_place_of_log_raises_write_error(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    writer = LogWriter(tmp_path)

    with pytest.raises(LogWriteError, match="a: read failed"):
        writer.append_if_absent("a", _commit("a" * 40))


def test_file_in_place_of_parent_raises_write_error(tmp_path: Path) -> None:
    (tmp_path / "a").write_text("not a directory\n")
    writer = LogWriter(tmp_path)

    with pytest.raises(LogWriteError, match="write failed"):
        writer.append_if_absent("a/b.txt", _commit("a" * 40))

    assert (tmp_path / "a").read_text() == "not a directory\n"


def test_failed_write_is_undone(tmp_path: Path, mocker: MagicMock) -> None:
    writer = LogWriter(tmp_path)
    writer.append_if_absent("x.txt", _commit("a" * 40))
    before = (tmp_path / "x.txt").read_bytes()
    mocker.patch("commit_mirror.log_writer.os.fsync", side_effect=OSError("disk full"))

    with pytest.raises(LogWriteError, match="disk full"):
        writer.append_if_absent("x.txt", _commit("b" * 40))

    assert (tmp_path / "x.txt").read_bytes() == before
