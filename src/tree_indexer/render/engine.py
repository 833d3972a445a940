"""Jinja2 rendering of directory index pages."""

from __future__ import annotations

from dataclasses import asdict

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from tree_indexer.walker.models import IndexLocals

INDEX_TEMPLATE = "index.html"
ROOT_INDEX_TEMPLATE = "root_index.html"


def build_environment() -> Environment:
    """Create the template environment for the bundled templates."""
    return Environment(
        loader=PackageLoader("tree_indexer.render", "templates"),
        autoescape=select_autoescape(enabled_extensions=("html",), default=True),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


class IndexRenderer:
    """Pure renderer from an ``IndexLocals`` record to page text."""

    def __init__(self, environment: Environment | None = None) -> None:
        self._environment = environment or build_environment()

    def render(self, locals_: IndexLocals, root: bool = False) -> str:
        """Render the subtree index, or the top-level index when ``root`` is set."""
        template_name = ROOT_INDEX_TEMPLATE if root else INDEX_TEMPLATE
        template = self._environment.get_template(template_name)
        return template.render(**asdict(locals_))
