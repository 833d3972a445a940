"""Typed models for the directory walk."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from tree_indexer.logging import display_name

BROKEN_PREFIX = "BROKEN "
BROKEN_HREF = "#"


class EntryKind(StrEnum):
    """Closed set of entry kinds, decided once per listed entry."""

    INDEX = "index"
    FILE = "file"
    SYMLINK = "symlink"
    DIRECTORY = "directory"
    OTHER = "other"


class RefKind(StrEnum):
    """Kinds of navigable references rendered into an index."""

    INDEX = "index"
    FILE = "file"
    LINK = "link"
    DIR = "dir"


@dataclass(slots=True, frozen=True)
class EntryDescriptor:
    """One entry as returned by a directory listing."""

    name: str
    kind: EntryKind
    mode: int = 0


@dataclass(slots=True, frozen=True)
class PathContext:
    """Ancestor names and the sibling directory names at the current level."""

    parents: tuple[str, ...] = ()
    siblings: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class DirectoryLocation:
    """Source, destination and web coordinates of the directory being walked."""

    src_tree: Path
    dst_tree: Path
    web_tree: str
    context: PathContext


@dataclass(slots=True, frozen=True)
class WebRef:
    """Navigable reference to one rendered entry."""

    kind: RefKind
    href: str
    title: str

    @property
    def broken(self) -> bool:
        return self.href == BROKEN_HREF and self.title.startswith(BROKEN_PREFIX)


@dataclass(slots=True, frozen=True)
class Breadcrumb:
    """Ancestor-trail element pointing at an ancestor's index."""

    base: str
    href: str
    title: str


@dataclass(slots=True, frozen=True)
class NavRef:
    """Sibling-level navigation element."""

    href: str
    title: str
    active: bool


@dataclass(slots=True, frozen=True)
class WalkStats:
    """Counters summed on fan-in; ``broken_names`` keeps listing order."""

    directories: int = 0
    files: int = 0
    links: int = 0
    indexes: int = 0
    broken: int = 0
    broken_names: tuple[str, ...] = ()

    def __add__(self, other: WalkStats) -> WalkStats:
        return WalkStats(
            directories=self.directories + other.directories,
            files=self.files + other.files,
            links=self.links + other.links,
            indexes=self.indexes + other.indexes,
            broken=self.broken + other.broken,
            broken_names=self.broken_names + other.broken_names,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "directories": self.directories,
            "files": self.files,
            "links": self.links,
            "indexes": self.indexes,
            "broken": self.broken,
            "broken_names": list(self.broken_names),
        }


@dataclass(slots=True, frozen=True)
class EntryResult:
    """The ``(WebRef, LogFragment)`` pair for one entry, plus its counters."""

    ref: WebRef | None
    log: str
    stats: WalkStats = field(default_factory=WalkStats)


@dataclass(slots=True, frozen=True)
class IndexLocals:
    """Everything a template needs to render one directory index."""

    dir_name: str
    breadcrumbs: tuple[Breadcrumb, ...]
    nav_refs: tuple[NavRef, ...]
    dir_refs: tuple[WebRef, ...]
    site_name: str
    web_root: str
    index_name: str


@dataclass(slots=True, frozen=True)
class IndexArtifact:
    """Rendered index text and the path it is written to."""

    path: Path
    text: str


class UnsupportedEntryError(Exception):
    """Raised for entries that are neither files, links nor directories."""

    def __init__(self, path: Path, mode: int) -> None:
        super().__init__(f"Unsupported entry kind at {path} (mode {mode:#o}).")
        self.path = path
        self.mode = mode


def broken_ref(kind: RefKind, name: str) -> WebRef:
    """Build the placeholder reference for an entry that failed."""
    return WebRef(kind=kind, href=BROKEN_HREF, title=f"{BROKEN_PREFIX}{display_name(name)}")
