"""Pure builders for breadcrumb and sibling navigation metadata."""

from __future__ import annotations

import os
from collections.abc import Iterable, Sequence
from urllib.parse import quote

from tree_indexer.logging import display_name
from tree_indexer.walker.models import Breadcrumb, NavRef


def encode_segment(name: str) -> str:
    """Percent-encode one path segment from its on-disk bytes."""
    return quote(os.fsencode(name), safe="")


def _relative_parts(relative_text: str) -> list[str]:
    return relative_text.replace("\\", "/").split("/")


def encode_relative(relative_text: str) -> str:
    """Percent-encode each segment of a relative path independently."""
    return "/".join(encode_segment(part) for part in _relative_parts(relative_text))


def escapes_tree(relative_text: str, depth: int) -> bool:
    """True when a relative path climbs above a directory ``depth`` levels below the root."""
    climbed = 0
    for part in _relative_parts(relative_text):
        if part != "..":
            break
        climbed += 1
    return climbed > depth


def join_url(base: str, *segments: str) -> str:
    """Join already-encoded segments onto ``base`` with single slashes."""
    url = base.rstrip("/")
    for segment in segments:
        url = f"{url}/{segment}"
    return url


def web_path(web_root: str, names: Iterable[str]) -> str:
    """Return the web URL of a directory given its raw path names."""
    return join_url(web_root, *(encode_segment(name) for name in names))


def breadcrumbs(web_root: str, parents: Sequence[str], index_name: str) -> tuple[Breadcrumb, ...]:
    """Build the ancestor trail, one breadcrumb per entry in ``parents``."""
    trail: list[Breadcrumb] = []
    base = web_root
    for name in parents:
        base = join_url(base, encode_segment(name))
        trail.append(
            Breadcrumb(base=base, href=join_url(base, index_name), title=display_name(name))
        )
    return tuple(trail)


def nav_refs(
    web_context: str,
    current_name: str,
    sibling_names: Sequence[str],
    index_name: str,
) -> tuple[NavRef, ...]:
    """Build sibling navigation, marking ``current_name`` active. Input order is kept."""
    refs: list[NavRef] = []
    for name in sibling_names:
        if name == current_name:
            refs.append(NavRef(href="#", title=display_name(name), active=True))
            continue
        refs.append(
            NavRef(
                href=join_url(web_context, encode_segment(name), index_name),
                title=display_name(name),
                active=False,
            )
        )
    return tuple(refs)
