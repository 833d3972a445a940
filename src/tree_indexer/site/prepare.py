"""Destination cleanup and asset staging run before the walk."""

from __future__ import annotations

import fnmatch
import os
import shutil
from pathlib import Path

from tree_indexer.config import PathsConfig
from tree_indexer.security import enforce_destination_policy


class DestinationNotCleanError(Exception):
    """Raised when the destination still has content after cleanup."""

    def __init__(self, destination: Path, leftovers: tuple[str, ...]) -> None:
        super().__init__(
            f"Destination {destination} is not empty after cleanup: {', '.join(leftovers)}"
        )
        self.destination = destination
        self.leftovers = leftovers


def prepare_destination(paths: PathsConfig) -> Path:
    """Delete and recreate the destination tree, verifying the deletion."""
    destination = enforce_destination_policy(paths.source_root, paths.destination_root)
    if destination.is_file():
        destination.unlink()
    elif destination.exists():
        shutil.rmtree(destination, ignore_errors=True)
    if destination.exists():
        leftovers = tuple(sorted(item.name for item in destination.iterdir()))
        raise DestinationNotCleanError(destination, leftovers)
    destination.mkdir(parents=True)
    return destination


def matches_any(name: str, patterns: tuple[str, ...]) -> bool:
    """Return True when ``name`` matches one of the asset patterns."""
    return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)


def stage_assets(assets_dir: Path, destination_root: Path, patterns: tuple[str, ...]) -> list[str]:
    """Copy matching asset files into the destination root, keeping relative paths."""
    if not assets_dir.is_dir():
        return []
    staged: list[str] = []
    for current, dirnames, filenames in os.walk(assets_dir):
        dirnames.sort()
        current_path = Path(current)
        for filename in sorted(filenames):
            if not matches_any(filename, patterns):
                continue
            source = current_path / filename
            relative = source.relative_to(assets_dir)
            target = destination_root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
            staged.append(relative.as_posix())
    return sorted(staged)
