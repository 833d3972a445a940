"""Index page rendering."""

from .engine import INDEX_TEMPLATE, ROOT_INDEX_TEMPLATE, IndexRenderer, build_environment

__all__ = ["INDEX_TEMPLATE", "ROOT_INDEX_TEMPLATE", "IndexRenderer", "build_environment"]
