from __future__ import annotations

import asyncio
from pathlib import Path

from tree_indexer.config import SiteConfig
from tree_indexer.logging import LogContext
from tree_indexer.render import IndexRenderer
from tree_indexer.walker import (
    AsyncFilesystem,
    DirectoryWalker,
    EntryDescriptor,
    IndexLocals,
    RefKind,
)

SITE = SiteConfig(
    web_root="http://x/",
    index_name="index.html",
    site_name="Test Site",
    asset_patterns=(),
)


class RecordingRenderer(IndexRenderer):
    """Keeps the locals of every render keyed by directory name."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: dict[str, tuple[IndexLocals, bool]] = {}

    def render(self, locals_: IndexLocals, root: bool = False) -> str:
        self.calls[locals_.dir_name] = (locals_, root)
        return super().render(locals_, root=root)


class ReversedSlowFilesystem(AsyncFilesystem):
    """Lists entries in reverse name order and finishes the first ones last."""

    async def list_entries(self, path: Path) -> list[EntryDescriptor]:
        entries = await super().list_entries(path)
        return sorted(entries, key=lambda item: item.name, reverse=True)

    async def real_path(self, path: Path) -> Path:
        delay = {"c.txt": 0.05, "b.txt": 0.02}.get(path.name, 0.0)
        await asyncio.sleep(delay)
        return await super().real_path(path)


def _source(tmp_path: Path) -> Path:
    home = tmp_path / "src" / "home"
    (home / "sub").mkdir(parents=True)
    (home / "a.txt").write_text("a", encoding="utf-8")
    (home / "b.txt").write_text("b", encoding="utf-8")
    (home / "c.txt").write_text("c", encoding="utf-8")
    (home / "sub" / "d.txt").write_text("d", encoding="utf-8")
    (tmp_path / "dst").mkdir()
    return home


def test_fan_in_keeps_listing_order_not_completion_order(tmp_path: Path) -> None:
    _source(tmp_path)
    renderer = RecordingRenderer()
    walker = DirectoryWalker(
        source_base=tmp_path / "src",
        destination_root=tmp_path / "dst",
        site=SITE,
        renderer=renderer,
        fs=ReversedSlowFilesystem(),
    )

    result = asyncio.run(walker.walk("home"))

    locals_, root = renderer.calls["home"]
    assert root is True
    assert [ref.title for ref in locals_.dir_refs] == ["sub", "c.txt", "b.txt", "a.txt"]
    assert result.log.splitlines()[1:] == [
        "  sub/ home | [sub]",
        "    d.txt",
        "  c.txt",
        "  b.txt",
        "  a.txt",
    ]


def test_subtree_log_and_stats_with_sorted_entries(tmp_path: Path) -> None:
    _source(tmp_path)
    walker = DirectoryWalker(
        source_base=tmp_path / "src",
        destination_root=tmp_path / "dst",
        site=SITE,
        renderer=IndexRenderer(),
        sort_entries=True,
    )

    result = asyncio.run(walker.walk("home", log=LogContext()))

    assert result.log == "\n".join(
        [
            "home/  | []",
            "  a.txt",
            "  b.txt",
            "  c.txt",
            "  sub/ home | [sub]",
            "    d.txt",
        ]
    )
    assert result.ref is not None
    assert result.ref.kind is RefKind.DIR
    assert result.ref.href == "http://x/home/index.html"
    assert result.stats.directories == 2
    assert result.stats.files == 4
    assert result.stats.broken == 0


def test_child_directories_receive_ancestors_and_siblings(tmp_path: Path) -> None:
    home = tmp_path / "src" / "home"
    (home / "alpha" / "one").mkdir(parents=True)
    (home / "beta" / "two").mkdir(parents=True)
    (tmp_path / "dst").mkdir()
    renderer = RecordingRenderer()
    walker = DirectoryWalker(
        source_base=tmp_path / "src",
        destination_root=tmp_path / "dst",
        site=SITE,
        renderer=renderer,
        sort_entries=True,
    )

    asyncio.run(walker.walk("home"))

    beta, beta_root = renderer.calls["beta"]
    assert beta_root is False
    assert [crumb.title for crumb in beta.breadcrumbs] == ["home"]
    assert [(nav.title, nav.active) for nav in beta.nav_refs] == [
        ("alpha", False),
        ("beta", True),
    ]
    assert beta.nav_refs[0].href == "http://x/home/alpha/index.html"

    two, _ = renderer.calls["two"]
    assert [crumb.title for crumb in two.breadcrumbs] == ["home", "beta"]
    assert two.breadcrumbs[-1].href == "http://x/home/beta/index.html"
    assert [(nav.title, nav.active) for nav in two.nav_refs] == [("two", True)]


def test_bounded_filesystem_completes_nested_walk(tmp_path: Path) -> None:
    deep = tmp_path / "src" / "home"
    for level in range(6):
        deep = deep / f"level{level}"
        deep.mkdir(parents=True)
        (deep / "file.txt").write_text(str(level), encoding="utf-8")
    (tmp_path / "dst").mkdir()
    walker = DirectoryWalker(
        source_base=tmp_path / "src",
        destination_root=tmp_path / "dst",
        site=SITE,
        renderer=IndexRenderer(),
        fs=AsyncFilesystem(max_concurrency=1),
    )

    result = asyncio.run(walker.walk("home"))

    assert result.stats.directories == 7
    assert result.stats.files == 6
    assert (tmp_path / "dst" / "home" / "level0" / "level1" / "index.html").is_file()
