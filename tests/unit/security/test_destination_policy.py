from __future__ import annotations

from pathlib import Path

import pytest

from tree_indexer.security import PathBlockedError, enforce_destination_policy


def test_sibling_destination_is_allowed(tmp_path: Path) -> None:
    source = tmp_path / "home"
    source.mkdir()

    assert enforce_destination_policy(source, tmp_path / "site") == (tmp_path / "site").resolve()


@pytest.mark.parametrize(
    ("destination", "reason"),
    [
        (".", "Destination is the source root."),
        ("inner/site", "Destination is inside the source root."),
        ("..", "Source root is inside the destination."),
    ],
)
def test_overlapping_destinations_are_blocked(
    tmp_path: Path, destination: str, reason: str
) -> None:
    source = tmp_path / "home"
    source.mkdir()

    with pytest.raises(PathBlockedError) as error:
        enforce_destination_policy(source, source / destination)

    assert error.value.reason == reason
    assert error.value.hint


def test_filesystem_root_is_blocked(tmp_path: Path) -> None:
    with pytest.raises(PathBlockedError) as error:
        enforce_destination_policy(tmp_path, Path(tmp_path.anchor))

    assert error.value.reason == "Destination is a filesystem root."


def test_missing_source_root_is_blocked(tmp_path: Path) -> None:
    with pytest.raises(PathBlockedError) as error:
        enforce_destination_policy(tmp_path / "hmoe", tmp_path / "site")

    assert error.value.reason == "Source root is not an existing directory."


def test_file_source_root_is_blocked(tmp_path: Path) -> None:
    (tmp_path / "home").write_text("not a directory", encoding="utf-8")

    with pytest.raises(PathBlockedError):
        enforce_destination_policy(tmp_path / "home", tmp_path / "site")
