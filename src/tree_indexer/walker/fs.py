"""Awaitable filesystem primitives with a bounded number of calls in flight."""

from __future__ import annotations

import asyncio
import os
import stat
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from tree_indexer.walker.models import EntryDescriptor, EntryKind

T = TypeVar("T")

DIRECTORY_MODE = 0o755
INDEX_FILE_MODE = 0o644


def describe_entry(entry: os.DirEntry[str]) -> EntryDescriptor:
    """Map a scandir entry to a descriptor without following symlinks."""
    if entry.is_symlink():
        return EntryDescriptor(name=entry.name, kind=EntryKind.SYMLINK)
    if entry.is_file(follow_symlinks=False):
        return EntryDescriptor(name=entry.name, kind=EntryKind.FILE)
    if entry.is_dir(follow_symlinks=False):
        return EntryDescriptor(name=entry.name, kind=EntryKind.DIRECTORY)
    mode = entry.stat(follow_symlinks=False).st_mode
    return EntryDescriptor(name=entry.name, kind=EntryKind.OTHER, mode=stat.S_IFMT(mode))


def _scan(path: Path) -> list[EntryDescriptor]:
    with os.scandir(path) as entries:
        return [describe_entry(entry) for entry in entries]


def _real_path(path: Path) -> str:
    return os.path.realpath(path, strict=True)


def _write_exclusive(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


class AsyncFilesystem:
    """Filesystem collaborator used by the walker.

    Every call runs in a worker thread and holds one slot of a shared
    semaphore, so a wide directory never has more than ``max_concurrency``
    operations in flight. Subclasses override individual primitives to
    inject failures in tests.
    """

    def __init__(self, max_concurrency: int = 64) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be a positive integer.")
        self._slots = asyncio.Semaphore(max_concurrency)

    async def _call(self, func: Callable[..., T], *args: object) -> T:
        async with self._slots:
            return await asyncio.to_thread(func, *args)

    async def list_entries(self, path: Path) -> list[EntryDescriptor]:
        """List ``path`` in directory order."""
        return await self._call(_scan, path)

    async def make_directory(self, path: Path, mode: int = DIRECTORY_MODE) -> None:
        await self._call(os.mkdir, path, mode)

    async def symlink(self, target: Path, link_path: Path) -> None:
        """Create ``link_path`` pointing at ``target``."""
        await self._call(os.symlink, target, link_path)

    async def read_link(self, path: Path) -> str:
        return await self._call(os.readlink, path)

    async def real_path(self, path: Path) -> Path:
        """Resolve every symlink in ``path``; missing targets raise ``OSError``."""
        resolved = await self._call(_real_path, path)
        return Path(resolved)

    async def stat(self, path: Path) -> os.stat_result:
        return await self._call(os.stat, path)

    async def write_exclusive(self, path: Path, data: bytes, mode: int = INDEX_FILE_MODE) -> None:
        """Write ``data`` to a new file; an existing file raises ``FileExistsError``."""
        await self._call(_write_exclusive, path, data, mode)
