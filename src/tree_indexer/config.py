"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "tree_indexer.toml"
MAX_CONCURRENCY_CAP = 1024
MAX_VERBOSITY = 2

DEFAULT_INDEX_NAME = "index.html"
DEFAULT_SITE_NAME = "Tree Index"
DEFAULT_WEB_ROOT = "/"
DEFAULT_MAX_CONCURRENCY = 64
DEFAULT_ASSET_PATTERNS = ("*.css", "*.js", "*.png", "*.svg", "*.ico", "*.gif", "*.jpg")
BUNDLED_ASSETS_DIR = Path(__file__).resolve().parent / "render" / "assets"

ENV_SOURCE_ROOT = "TREE_INDEXER_SOURCE_ROOT"
ENV_DESTINATION_ROOT = "TREE_INDEXER_DESTINATION_ROOT"
ENV_WEB_ROOT = "TREE_INDEXER_WEB_ROOT"
ENV_VERBOSITY = "TREE_INDEXER_VERBOSITY"


@dataclass(slots=True, frozen=True)
class PathsConfig:
    """Filesystem locations read and written by one run."""

    source_root: Path
    destination_root: Path
    assets_dir: Path
    data_dir: Path


@dataclass(slots=True, frozen=True)
class SiteConfig:
    """Static site options shared by every rendered index."""

    web_root: str
    index_name: str
    site_name: str
    asset_patterns: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class WalkConfig:
    """Walker tuning knobs."""

    max_concurrency: int
    verbosity: int
    sort_entries: bool


@dataclass(slots=True, frozen=True)
class IndexerConfig:
    """Fully merged indexer configuration."""

    paths: PathsConfig
    site: SiteConfig
    walk: WalkConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for the run log."""
        return {
            "paths": {
                "source_root": str(self.paths.source_root),
                "destination_root": str(self.paths.destination_root),
                "assets_dir": str(self.paths.assets_dir),
                "data_dir": str(self.paths.data_dir),
            },
            "site": {
                "web_root": self.site.web_root,
                "index_name": self.site.index_name,
                "site_name": self.site.site_name,
                "asset_patterns": list(self.site.asset_patterns),
            },
            "walk": {
                "max_concurrency": self.walk.max_concurrency,
                "verbosity": self.walk.verbosity,
                "sort_entries": self.walk.sort_entries,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    source_root: Path | None = None
    destination_root: Path | None = None
    web_root: str | None = None
    index_name: str | None = None
    site_name: str | None = None
    assets_dir: Path | None = None
    data_dir: Path | None = None
    max_concurrency: int | None = None
    verbosity: int | None = None
    sort_entries: bool | None = None


def default_config(base_dir: Path) -> IndexerConfig:
    """Build default config with paths anchored at ``base_dir``."""
    resolved = base_dir.resolve()
    return IndexerConfig(
        paths=PathsConfig(
            source_root=resolved / "home",
            destination_root=resolved / "site",
            assets_dir=BUNDLED_ASSETS_DIR,
            data_dir=resolved / ".tree_indexer",
        ),
        site=SiteConfig(
            web_root=DEFAULT_WEB_ROOT,
            index_name=DEFAULT_INDEX_NAME,
            site_name=DEFAULT_SITE_NAME,
            asset_patterns=DEFAULT_ASSET_PATTERNS,
        ),
        walk=WalkConfig(
            max_concurrency=DEFAULT_MAX_CONCURRENCY,
            verbosity=1,
            sort_entries=False,
        ),
    )


def load_config_file(path: Path) -> dict[str, object]:
    """Load an optional TOML config file; a missing file yields an empty payload."""
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_str(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value:
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def _optional_path(value: object, name: str, default: Path, base_dir: Path) -> Path:
    if value is None:
        return default
    if not isinstance(value, str) or not value:
        raise ValueError(f"Config field '{name}' must be a non-empty path string.")
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return candidate.resolve()


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_int_in_range(
    value: object,
    name: str,
    default: int,
    minimum: int,
    maximum: int,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Config field '{name}' must be an integer.")
    if value < minimum or value > maximum:
        raise ValueError(f"Config field '{name}' must be between {minimum} and {maximum}.")
    return value


def _validated_index_name(value: str, name: str) -> str:
    if "/" in value or "\\" in value or value in {".", ".."}:
        raise ValueError(f"Config field '{name}' must be a bare file name.")
    return value


def merge_config(
    base: IndexerConfig,
    payload: dict[str, object],
    base_dir: Path,
) -> IndexerConfig:
    """Merge a parsed TOML payload over ``base``; relative paths resolve from ``base_dir``."""
    paths_payload = _get_table(payload, "paths")
    site_payload = _get_table(payload, "site")
    walk_payload = _get_table(payload, "walk")

    asset_patterns = base.site.asset_patterns
    if "asset_patterns" in site_payload:
        asset_patterns = _tuple_of_strings(site_payload["asset_patterns"], "site", "asset_patterns")

    return IndexerConfig(
        paths=PathsConfig(
            source_root=_optional_path(
                paths_payload.get("source_root"),
                "paths.source_root",
                base.paths.source_root,
                base_dir,
            ),
            destination_root=_optional_path(
                paths_payload.get("destination_root"),
                "paths.destination_root",
                base.paths.destination_root,
                base_dir,
            ),
            assets_dir=_optional_path(
                paths_payload.get("assets_dir"),
                "paths.assets_dir",
                base.paths.assets_dir,
                base_dir,
            ),
            data_dir=_optional_path(
                paths_payload.get("data_dir"),
                "paths.data_dir",
                base.paths.data_dir,
                base_dir,
            ),
        ),
        site=SiteConfig(
            web_root=_optional_str(site_payload.get("web_root"), "site.web_root", base.site.web_root),
            index_name=_validated_index_name(
                _optional_str(
                    site_payload.get("index_name"), "site.index_name", base.site.index_name
                ),
                "site.index_name",
            ),
            site_name=_optional_str(
                site_payload.get("site_name"), "site.site_name", base.site.site_name
            ),
            asset_patterns=asset_patterns,
        ),
        walk=WalkConfig(
            max_concurrency=_optional_int_in_range(
                walk_payload.get("max_concurrency"),
                "walk.max_concurrency",
                base.walk.max_concurrency,
                1,
                MAX_CONCURRENCY_CAP,
            ),
            verbosity=_optional_int_in_range(
                walk_payload.get("verbosity"),
                "walk.verbosity",
                base.walk.verbosity,
                0,
                MAX_VERBOSITY,
            ),
            sort_entries=_optional_bool(
                walk_payload.get("sort_entries"), "walk.sort_entries", base.walk.sort_entries
            ),
        ),
    )


def overrides_from_environment(environ: Mapping[str, str]) -> CliOverrides:
    """Read the supported ``TREE_INDEXER_*`` variables into overrides."""
    verbosity: int | None = None
    raw_verbosity = environ.get(ENV_VERBOSITY, "").strip()
    if raw_verbosity:
        try:
            verbosity = int(raw_verbosity)
        except ValueError as exc:
            raise ValueError(f"Environment variable {ENV_VERBOSITY} must be an integer.") from exc
    source_root = environ.get(ENV_SOURCE_ROOT, "").strip()
    destination_root = environ.get(ENV_DESTINATION_ROOT, "").strip()
    web_root = environ.get(ENV_WEB_ROOT, "").strip()
    return CliOverrides(
        source_root=Path(source_root).resolve() if source_root else None,
        destination_root=Path(destination_root).resolve() if destination_root else None,
        web_root=web_root or None,
        verbosity=verbosity,
    )


def combine_overrides(lower: CliOverrides, higher: CliOverrides) -> CliOverrides:
    """Layer two override sets; fields set in ``higher`` win."""
    return CliOverrides(
        source_root=higher.source_root or lower.source_root,
        destination_root=higher.destination_root or lower.destination_root,
        web_root=higher.web_root if higher.web_root is not None else lower.web_root,
        index_name=higher.index_name if higher.index_name is not None else lower.index_name,
        site_name=higher.site_name if higher.site_name is not None else lower.site_name,
        assets_dir=higher.assets_dir or lower.assets_dir,
        data_dir=higher.data_dir or lower.data_dir,
        max_concurrency=(
            higher.max_concurrency
            if higher.max_concurrency is not None
            else lower.max_concurrency
        ),
        verbosity=higher.verbosity if higher.verbosity is not None else lower.verbosity,
        sort_entries=(
            higher.sort_entries if higher.sort_entries is not None else lower.sort_entries
        ),
    )


def apply_cli_overrides(config: IndexerConfig, overrides: CliOverrides) -> IndexerConfig:
    """Apply startup overrides at highest precedence."""
    index_name = config.site.index_name
    if overrides.index_name is not None:
        index_name = _validated_index_name(
            _optional_str(overrides.index_name, "overrides.index_name", index_name),
            "overrides.index_name",
        )
    return IndexerConfig(
        paths=PathsConfig(
            source_root=(overrides.source_root or config.paths.source_root).resolve(),
            destination_root=(
                overrides.destination_root or config.paths.destination_root
            ).resolve(),
            assets_dir=(overrides.assets_dir or config.paths.assets_dir).resolve(),
            data_dir=(overrides.data_dir or config.paths.data_dir).resolve(),
        ),
        site=SiteConfig(
            web_root=_optional_str(overrides.web_root, "overrides.web_root", config.site.web_root),
            index_name=index_name,
            site_name=_optional_str(
                overrides.site_name, "overrides.site_name", config.site.site_name
            ),
            asset_patterns=config.site.asset_patterns,
        ),
        walk=WalkConfig(
            max_concurrency=_optional_int_in_range(
                overrides.max_concurrency,
                "overrides.max_concurrency",
                config.walk.max_concurrency,
                1,
                MAX_CONCURRENCY_CAP,
            ),
            verbosity=_optional_int_in_range(
                overrides.verbosity,
                "overrides.verbosity",
                config.walk.verbosity,
                0,
                MAX_VERBOSITY,
            ),
            sort_entries=(
                overrides.sort_entries
                if overrides.sort_entries is not None
                else config.walk.sort_entries
            ),
        ),
    )


def load_effective_config(
    base_dir: Path,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: CliOverrides | None = None,
) -> IndexerConfig:
    """Load effective config using merge order defaults -> file -> environment -> overrides."""
    resolved_base = base_dir.resolve()
    base = default_config(resolved_base)
    file_path = config_path if config_path is not None else resolved_base / CONFIG_FILE_NAME
    payload = load_config_file(file_path)
    merged = merge_config(base, payload, file_path.resolve().parent)
    layered = combine_overrides(
        overrides_from_environment(environ or {}),
        overrides or CliOverrides(),
    )
    return apply_cli_overrides(merged, layered)
