"""Immutable progress-log context threaded through the directory walk."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, replace

QUIET = 0
NORMAL = 1
DETAILED = 2


def display_name(name: str) -> str:
    """Return ``name`` with undecodable filename bytes replaced by U+FFFD."""
    return os.fsencode(name).decode("utf-8", errors="replace")


@dataclass(slots=True, frozen=True)
class LogContext:
    """Indentation and verbosity for one level of the progress tree."""

    indent: int = 0
    step: int = 2
    verbosity: int = NORMAL

    def deeper(self) -> LogContext:
        """Return the context one level further down the tree."""
        return replace(self, indent=self.indent + self.step)

    def pad(self, name: str) -> str:
        return " " * self.indent + display_name(name)

    def entry(self, name: str, detail: str | None = None) -> str:
        """Format one leaf line; ``detail`` only shows at detailed verbosity."""
        if detail and self.verbosity >= DETAILED:
            return f"{self.pad(name)} -> {display_name(detail)}"
        return self.pad(name)

    def marker(self, name: str, label: str) -> str:
        return f"{self.pad(name)} [{label}]"

    def broken(self, name: str, error: BaseException | str) -> str:
        """Format a diagnostic line for an entry that failed to process."""
        return f"{self.pad(name)} !! {describe_error(error)}"

    def header(self, dir_name: str, parents: Sequence[str], siblings: Sequence[str]) -> str:
        """Format the first line of a directory block."""
        trail = " --> ".join(display_name(name) for name in parents)
        level = ", ".join(display_name(name) for name in siblings)
        return f"{self.pad(dir_name)}/ {trail} | [{level}]"

    def block(self, header: str, fragments: Sequence[str]) -> str:
        """Join a directory header with its ordered child fragments."""
        return "\n".join([header, *fragments])


def describe_error(error: BaseException | str) -> str:
    """Return a one-line diagnostic for an exception or message."""
    if isinstance(error, str):
        return display_name(error)
    text = display_name(str(error).strip())
    if not text:
        return type(error).__name__
    return f"{type(error).__name__}: {text}"
