"""Concurrent directory walk, entry processing and navigation metadata."""

from .entries import classify_entry, process_entry
from .fs import AsyncFilesystem, describe_entry
from .models import (
    Breadcrumb,
    DirectoryLocation,
    EntryDescriptor,
    EntryKind,
    EntryResult,
    IndexArtifact,
    IndexLocals,
    NavRef,
    PathContext,
    RefKind,
    UnsupportedEntryError,
    WalkStats,
    WebRef,
)
from .navigation import (
    breadcrumbs,
    encode_relative,
    encode_segment,
    escapes_tree,
    nav_refs,
    web_path,
)
from .tree import DirectoryWalker

__all__ = [
    "AsyncFilesystem",
    "Breadcrumb",
    "DirectoryLocation",
    "DirectoryWalker",
    "EntryDescriptor",
    "EntryKind",
    "EntryResult",
    "IndexArtifact",
    "IndexLocals",
    "NavRef",
    "PathContext",
    "RefKind",
    "UnsupportedEntryError",
    "WalkStats",
    "WebRef",
    "breadcrumbs",
    "classify_entry",
    "describe_entry",
    "encode_relative",
    "encode_segment",
    "escapes_tree",
    "nav_refs",
    "process_entry",
    "web_path",
]
