"""Recursive concurrent directory walker."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from tree_indexer.config import SiteConfig
from tree_indexer.logging import LogContext, display_name
from tree_indexer.walker.entries import process_entry
from tree_indexer.walker.fs import AsyncFilesystem
from tree_indexer.walker.models import (
    DirectoryLocation,
    EntryKind,
    EntryResult,
    IndexArtifact,
    IndexLocals,
    PathContext,
    RefKind,
    WalkStats,
    WebRef,
    broken_ref,
)
from tree_indexer.walker.navigation import breadcrumbs, join_url, nav_refs, web_path

if TYPE_CHECKING:
    from tree_indexer.render import IndexRenderer


class DirectoryWalker:
    """Mirror a source tree as symlinks and write one index per directory.

    ``source_base`` and ``destination_root`` are the directories that hold the
    walked root, so the root's own name is the first segment of every mirrored
    path and href.
    """

    def __init__(
        self,
        *,
        source_base: Path,
        destination_root: Path,
        site: SiteConfig,
        renderer: IndexRenderer,
        fs: AsyncFilesystem | None = None,
        sort_entries: bool = False,
    ) -> None:
        self._source_base = source_base
        self._destination_root = destination_root
        self._site = site
        self._renderer = renderer
        self._fs = fs or AsyncFilesystem()
        self._sort_entries = sort_entries

    @property
    def fs(self) -> AsyncFilesystem:
        return self._fs

    @property
    def index_name(self) -> str:
        return self._site.index_name

    async def walk(
        self,
        dir_name: str,
        parents: Sequence[str] = (),
        siblings: Sequence[str] = (),
        log: LogContext | None = None,
    ) -> EntryResult:
        """Walk one directory and return its reference, subtree log and counters."""
        log = log or LogContext()
        parents = tuple(parents)
        siblings = tuple(siblings)
        next_parents = (*parents, dir_name)
        relative = "/".join(next_parents)
        src_tree = self._source_base.joinpath(*next_parents)
        dst_tree = self._destination_root.joinpath(*next_parents)
        web_tree = web_path(self._site.web_root, next_parents)
        header = log.header(dir_name, parents, siblings)

        # The destination directory must exist before any child links into it.
        try:
            await self._fs.make_directory(dst_tree)
            entries = await self._fs.list_entries(src_tree)
        except OSError as exc:
            return EntryResult(
                ref=broken_ref(RefKind.DIR, dir_name),
                log=log.broken(f"{dir_name}/", exc),
                stats=WalkStats(directories=1, broken=1, broken_names=(relative,)),
            )

        if self._sort_entries:
            entries = sorted(entries, key=lambda item: item.name)
        child_siblings = tuple(
            entry.name
            for entry in entries
            if entry.kind is EntryKind.DIRECTORY and entry.name != self.index_name
        )
        location = DirectoryLocation(
            src_tree=src_tree,
            dst_tree=dst_tree,
            web_tree=web_tree,
            context=PathContext(parents=next_parents, siblings=child_siblings),
        )
        child_log = log.deeper()
        results = await asyncio.gather(
            *(process_entry(entry, location, self, child_log) for entry in entries)
        )

        dir_refs = tuple(result.ref for result in results if result.ref is not None)
        fragments = [result.log for result in results]
        stats = sum((result.stats for result in results), WalkStats(directories=1))

        artifact = self.render_index(dir_name, parents, siblings, dir_refs, dst_tree)
        try:
            await self._fs.write_exclusive(artifact.path, artifact.text.encode("utf-8"))
        except OSError as exc:
            return EntryResult(
                ref=broken_ref(RefKind.DIR, dir_name),
                log=log.block(header, [*fragments, child_log.broken(self.index_name, exc)]),
                stats=stats + WalkStats(broken=1, broken_names=(relative,)),
            )

        return EntryResult(
            ref=WebRef(
                kind=RefKind.DIR,
                href=join_url(web_tree, self.index_name),
                title=display_name(dir_name),
            ),
            log=log.block(header, fragments),
            stats=stats,
        )

    def index_locals(
        self,
        dir_name: str,
        parents: tuple[str, ...],
        siblings: tuple[str, ...],
        dir_refs: tuple[WebRef, ...],
    ) -> IndexLocals:
        """Collect the template locals for one directory."""
        web_root = self._site.web_root
        return IndexLocals(
            dir_name=display_name(dir_name),
            breadcrumbs=breadcrumbs(web_root, parents, self.index_name),
            nav_refs=nav_refs(web_path(web_root, parents), dir_name, siblings, self.index_name),
            dir_refs=dir_refs,
            site_name=self._site.site_name,
            web_root=web_root,
            index_name=self.index_name,
        )

    def render_index(
        self,
        dir_name: str,
        parents: tuple[str, ...],
        siblings: tuple[str, ...],
        dir_refs: tuple[WebRef, ...],
        dst_tree: Path,
    ) -> IndexArtifact:
        """Render the index page; the tree root uses the breadcrumb-less template."""
        locals_ = self.index_locals(dir_name, parents, siblings, dir_refs)
        text = self._renderer.render(locals_, root=not parents)
        return IndexArtifact(path=dst_tree / self.index_name, text=text)
