"""Path safety checks for the destructive destination cleanup."""

from __future__ import annotations

from pathlib import Path


class PathBlockedError(Exception):
    """Raised when a configured path would make cleanup unsafe."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def enforce_destination_policy(source_root: Path, destination_root: Path) -> Path:
    """Return the resolved destination once it is safe to delete and rebuild."""
    source = source_root.resolve()
    destination = destination_root.resolve()

    if not source.is_dir():
        raise PathBlockedError(
            reason="Source root is not an existing directory.",
            hint="Check the source root path; the destination was left untouched.",
        )
    if destination == Path(destination.anchor):
        raise PathBlockedError(
            reason="Destination is a filesystem root.",
            hint="Point the destination at a dedicated output directory.",
        )
    if destination == Path.home().resolve():
        raise PathBlockedError(
            reason="Destination is the home directory.",
            hint="Point the destination at a dedicated output directory.",
        )
    if destination == source:
        raise PathBlockedError(
            reason="Destination is the source root.",
            hint="Use a destination outside the source tree.",
        )
    if destination.is_relative_to(source):
        raise PathBlockedError(
            reason="Destination is inside the source root.",
            hint="Use a destination outside the source tree.",
        )
    if source.is_relative_to(destination):
        raise PathBlockedError(
            reason="Source root is inside the destination.",
            hint="Cleanup would delete the source; choose a sibling directory instead.",
        )
    return destination
