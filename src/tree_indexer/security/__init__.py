"""Path safety primitives."""

from .paths import PathBlockedError, enforce_destination_policy

__all__ = [
    "PathBlockedError",
    "enforce_destination_policy",
]
