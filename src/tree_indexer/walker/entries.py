"""Entry classification and per-entry processors."""

from __future__ import annotations

import os
import stat
from typing import TYPE_CHECKING

from tree_indexer.logging import LogContext, display_name
from tree_indexer.walker.fs import AsyncFilesystem
from tree_indexer.walker.models import (
    DirectoryLocation,
    EntryDescriptor,
    EntryKind,
    EntryResult,
    RefKind,
    UnsupportedEntryError,
    WalkStats,
    WebRef,
    broken_ref,
)
from tree_indexer.walker.navigation import encode_relative, encode_segment, escapes_tree, join_url

if TYPE_CHECKING:
    from tree_indexer.walker.tree import DirectoryWalker


def classify_entry(entry: EntryDescriptor, index_name: str) -> EntryKind:
    """Return the entry kind; the index marker wins over the listed kind."""
    if entry.name == index_name:
        return EntryKind.INDEX
    return entry.kind


async def process_entry(
    entry: EntryDescriptor,
    location: DirectoryLocation,
    walker: DirectoryWalker,
    log: LogContext,
) -> EntryResult:
    """Dispatch one listed entry to its processor."""
    match classify_entry(entry, walker.index_name):
        case EntryKind.INDEX:
            return process_index_marker(entry, log)
        case EntryKind.FILE:
            return await process_file(entry, location, walker.fs, log)
        case EntryKind.SYMLINK:
            return await process_symlink(entry, location, walker.fs, walker.index_name, log)
        case EntryKind.DIRECTORY:
            return await walker.walk(
                entry.name,
                location.context.parents,
                location.context.siblings,
                log,
            )
        case _:
            raise UnsupportedEntryError(location.src_tree / entry.name, entry.mode)


def process_index_marker(entry: EntryDescriptor, log: LogContext) -> EntryResult:
    """A previously rendered index contributes a log line but no reference."""
    return EntryResult(ref=None, log=log.marker(entry.name, "index"), stats=WalkStats(indexes=1))


async def process_file(
    entry: EntryDescriptor,
    location: DirectoryLocation,
    fs: AsyncFilesystem,
    log: LogContext,
) -> EntryResult:
    """Link a regular file into the destination tree."""
    source = location.src_tree / entry.name
    try:
        target = await fs.real_path(source)
        await fs.symlink(target, location.dst_tree / entry.name)
    except OSError as exc:
        return broken_entry(RefKind.FILE, entry, location, log, exc)
    return EntryResult(
        ref=WebRef(
            kind=RefKind.FILE,
            href=join_url(location.web_tree, encode_segment(entry.name)),
            title=display_name(entry.name),
        ),
        log=log.entry(entry.name, str(target)),
        stats=WalkStats(files=1),
    )


async def process_symlink(
    entry: EntryDescriptor,
    location: DirectoryLocation,
    fs: AsyncFilesystem,
    index_name: str,
    log: LogContext,
) -> EntryResult:
    """Mirror a symbolic link; links to directories point at the target's index."""
    source = location.src_tree / entry.name
    try:
        link_text = await fs.read_link(source)
        target = await fs.real_path(source)
        base = await fs.real_path(location.src_tree)
        relative_text = os.path.relpath(target, base)
        target_stat = await fs.stat(target)
        await fs.symlink(target, location.dst_tree / entry.name)
    except OSError as exc:
        return broken_entry(RefKind.LINK, entry, location, log, exc)

    encoded = encode_relative(relative_text)
    if stat.S_ISDIR(target_stat.st_mode):
        href = join_url(location.web_tree, encoded, index_name)
    else:
        href = join_url(location.web_tree, encoded)
    detail = link_text
    # Targets outside the source tree keep their href; no index is generated there.
    if escapes_tree(relative_text, len(location.context.parents) - 1):
        detail = f"{link_text} (outside the source tree)"
    return EntryResult(
        ref=WebRef(kind=RefKind.LINK, href=href, title=display_name(entry.name)),
        log=log.entry(entry.name, detail),
        stats=WalkStats(links=1),
    )


def broken_entry(
    kind: RefKind,
    entry: EntryDescriptor,
    location: DirectoryLocation,
    log: LogContext,
    error: OSError,
) -> EntryResult:
    """Build the placeholder pair for an entry whose processing failed."""
    relative = "/".join((*location.context.parents, entry.name))
    return EntryResult(
        ref=broken_ref(kind, entry.name),
        log=log.broken(entry.name, error),
        stats=WalkStats(broken=1, broken_names=(relative,)),
    )
