from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from tree_indexer.config import SiteConfig
from tree_indexer.render import IndexRenderer
from tree_indexer.walker import (
    AsyncFilesystem,
    DirectoryWalker,
    EntryDescriptor,
    RefKind,
    UnsupportedEntryError,
    WebRef,
)

SITE = SiteConfig(
    web_root="http://x/",
    index_name="index.html",
    site_name="Test Site",
    asset_patterns=(),
)


class LockedListingFilesystem(AsyncFilesystem):
    """Refuses to list one directory by name."""

    def __init__(self, locked: str) -> None:
        super().__init__()
        self._locked = locked

    async def list_entries(self, path: Path) -> list[EntryDescriptor]:
        if path.name == self._locked:
            raise PermissionError(13, "Permission denied", str(path))
        return await super().list_entries(path)


class StaleIndexFilesystem(AsyncFilesystem):
    """Drops a stale index into one destination directory right after creating it."""

    def __init__(self, stale: str) -> None:
        super().__init__()
        self._stale = stale

    async def make_directory(self, path: Path, mode: int = 0o755) -> None:
        await super().make_directory(path, mode)
        if path.name == self._stale:
            (path / "index.html").write_text("stale", encoding="utf-8")


def _walker(tmp_path: Path, fs: AsyncFilesystem | None = None) -> DirectoryWalker:
    (tmp_path / "dst").mkdir(exist_ok=True)
    return DirectoryWalker(
        source_base=tmp_path / "src",
        destination_root=tmp_path / "dst",
        site=SITE,
        renderer=IndexRenderer(),
        fs=fs,
        sort_entries=True,
    )


def test_unreadable_directory_is_broken_and_siblings_survive(tmp_path: Path) -> None:
    home = tmp_path / "src" / "home"
    (home / "locked").mkdir(parents=True)
    (home / "open").mkdir()
    (home / "open" / "ok.txt").write_text("ok", encoding="utf-8")

    result = asyncio.run(_walker(tmp_path, LockedListingFilesystem("locked")).walk("home"))

    assert "  locked/ !! PermissionError" in result.log
    assert result.stats.broken_names == ("home/locked",)
    assert (tmp_path / "dst" / "home" / "open" / "ok.txt").is_symlink()
    index = (tmp_path / "dst" / "home" / "index.html").read_text(encoding="utf-8")
    assert "BROKEN locked" in index
    assert "http://x/home/open/index.html" in index


def test_existing_index_is_a_conflict_not_an_overwrite(tmp_path: Path) -> None:
    home = tmp_path / "src" / "home"
    (home / "sub").mkdir(parents=True)
    (home / "sub" / "b.txt").write_text("b", encoding="utf-8")

    result = asyncio.run(_walker(tmp_path, StaleIndexFilesystem("sub")).walk("home"))

    sub_index = tmp_path / "dst" / "home" / "sub" / "index.html"
    assert sub_index.read_text(encoding="utf-8") == "stale"
    assert (tmp_path / "dst" / "home" / "sub" / "b.txt").is_symlink()
    assert "    index.html !! FileExistsError" in result.log
    assert result.stats.broken_names == ("home/sub",)
    home_index = (tmp_path / "dst" / "home" / "index.html").read_text(encoding="utf-8")
    assert "BROKEN sub" in home_index


def test_root_failure_still_returns_a_broken_pair(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()

    result = asyncio.run(_walker(tmp_path).walk("missing"))

    assert result.ref == WebRef(kind=RefKind.DIR, href="#", title="BROKEN missing")
    assert result.log.startswith("missing/ !! FileNotFoundError")


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires FIFO support")
def test_unsupported_entry_kind_aborts_the_walk(tmp_path: Path) -> None:
    home = tmp_path / "src" / "home"
    (home / "nested").mkdir(parents=True)
    os.mkfifo(home / "nested" / "pipe")

    with pytest.raises(UnsupportedEntryError) as error:
        asyncio.run(_walker(tmp_path).walk("home"))

    assert error.value.path == home / "nested" / "pipe"
    assert not (tmp_path / "dst" / "home" / "index.html").exists()
