"""Command-line entrypoint and top-level run orchestration."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from tree_indexer.config import CliOverrides, IndexerConfig, load_effective_config
from tree_indexer.logging import (
    DETAILED,
    NORMAL,
    QUIET,
    JsonlRunLogger,
    LogContext,
    RunEvent,
    describe_error,
    display_name,
    new_run_id,
    utc_timestamp,
)
from tree_indexer.render import IndexRenderer
from tree_indexer.security import PathBlockedError
from tree_indexer.site import DestinationNotCleanError, prepare_destination, stage_assets
from tree_indexer.walker import (
    AsyncFilesystem,
    DirectoryWalker,
    EntryResult,
    UnsupportedEntryError,
    WalkStats,
    WebRef,
)

EXIT_OK = 0
EXIT_WALK_FAILED = 1
EXIT_USAGE = 2


@dataclass(slots=True, frozen=True)
class RunOutcome:
    """Result of one full indexer run."""

    ok: bool
    exit_code: int
    error_code: str | None = None
    message: str | None = None
    log: str = ""
    root_ref: WebRef | None = None
    stats: WalkStats = field(default_factory=WalkStats)
    staged_assets: tuple[str, ...] = ()


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for run configuration."""
    parser = argparse.ArgumentParser(
        prog="tree-indexer",
        description="Mirror a directory tree as symlinks with a static HTML index per level.",
    )
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--source-root", required=False, default=None)
    parser.add_argument("--destination-root", required=False, default=None)
    parser.add_argument("--web-root", required=False, default=None)
    parser.add_argument("--index-name", required=False, default=None)
    parser.add_argument("--site-name", required=False, default=None)
    parser.add_argument("--assets-dir", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--max-concurrency", type=int, required=False, default=None)
    parser.add_argument(
        "--sort-entries", action=argparse.BooleanOptionalAction, required=False, default=None
    )
    parser.add_argument("--last-run", action="store_true", default=False)
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", default=False)
    verbosity.add_argument("-q", "--quiet", action="store_true", default=False)
    return parser


def _optional_path(value: str | None) -> Path | None:
    return Path(value).resolve() if value is not None else None


def overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    """Translate parsed arguments into config overrides."""
    verbosity: int | None = None
    if args.verbose:
        verbosity = DETAILED
    if args.quiet:
        verbosity = QUIET
    return CliOverrides(
        source_root=_optional_path(args.source_root),
        destination_root=_optional_path(args.destination_root),
        web_root=args.web_root,
        index_name=args.index_name,
        site_name=args.site_name,
        assets_dir=_optional_path(args.assets_dir),
        data_dir=_optional_path(args.data_dir),
        max_concurrency=args.max_concurrency,
        verbosity=verbosity,
        sort_entries=args.sort_entries,
    )


class TreeIndexer:
    """Prepares the destination, runs the walker once at the root, records the run."""

    def __init__(
        self,
        config: IndexerConfig,
        fs: AsyncFilesystem | None = None,
        renderer: IndexRenderer | None = None,
    ) -> None:
        self._config = config
        self._fs = fs
        self._renderer = renderer or IndexRenderer()
        self._run_logger = JsonlRunLogger(path=config.paths.data_dir / "runs.jsonl")

    @property
    def config(self) -> IndexerConfig:
        return self._config

    @property
    def run_logger(self) -> JsonlRunLogger:
        return self._run_logger

    async def walk(self) -> EntryResult:
        """Walk the configured source root with empty ancestor and sibling context."""
        paths = self._config.paths
        walker = DirectoryWalker(
            source_base=paths.source_root.parent,
            destination_root=paths.destination_root,
            site=self._config.site,
            renderer=self._renderer,
            fs=self._fs or AsyncFilesystem(self._config.walk.max_concurrency),
            sort_entries=self._config.walk.sort_entries,
        )
        log = LogContext(verbosity=self._config.walk.verbosity)
        return await walker.walk(paths.source_root.name, (), (), log)

    def run(self) -> RunOutcome:
        """Execute one full run and append its run event."""
        paths = self._config.paths
        try:
            prepare_destination(paths)
            staged = tuple(
                stage_assets(
                    paths.assets_dir,
                    paths.destination_root,
                    self._config.site.asset_patterns,
                )
            )
        except PathBlockedError as exc:
            outcome = RunOutcome(
                ok=False,
                exit_code=EXIT_USAGE,
                error_code="PATH_BLOCKED",
                message=f"{exc.reason} {exc.hint}",
            )
            self._record(outcome)
            return outcome
        except DestinationNotCleanError as exc:
            outcome = RunOutcome(
                ok=False,
                exit_code=EXIT_USAGE,
                error_code="DESTINATION_NOT_CLEAN",
                message=str(exc),
            )
            self._record(outcome)
            return outcome

        try:
            result = asyncio.run(self.walk())
        except UnsupportedEntryError as exc:
            outcome = RunOutcome(
                ok=False,
                exit_code=EXIT_WALK_FAILED,
                error_code="UNSUPPORTED_ENTRY",
                message=describe_error(exc),
                staged_assets=staged,
            )
            self._record(outcome)
            return outcome

        outcome = RunOutcome(
            ok=True,
            exit_code=EXIT_OK,
            log=result.log,
            root_ref=result.ref,
            stats=result.stats,
            staged_assets=staged,
        )
        self._record(outcome)
        return outcome

    def last_run(self) -> dict[str, object] | None:
        """Return the most recent recorded run event, if any."""
        events = self._run_logger.read(limit=1)
        return events[-1] if events else None

    def _record(self, outcome: RunOutcome) -> None:
        paths = self._config.paths
        metadata: dict[str, object] = {
            "stats": outcome.stats.to_dict(),
            "staged_assets": list(outcome.staged_assets),
            "config": self._config.to_public_dict(),
        }
        if outcome.root_ref is not None:
            metadata["root_href"] = outcome.root_ref.href
        if outcome.message is not None:
            metadata["message"] = outcome.message
        self._run_logger.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=new_run_id(),
                ok=outcome.ok,
                error_code=outcome.error_code,
                source_root=str(paths.source_root),
                destination_root=str(paths.destination_root),
                metadata=metadata,
            )
        )


def create_indexer(
    base_dir: str = ".",
    config_path: str | None = None,
    environ: dict[str, str] | None = None,
    cli_overrides: CliOverrides | None = None,
    fs: AsyncFilesystem | None = None,
) -> TreeIndexer:
    """Create a configured indexer instance."""
    config = load_effective_config(
        base_dir=Path(base_dir).resolve(),
        config_path=Path(config_path).resolve() if config_path is not None else None,
        environ=environ,
        overrides=cli_overrides,
    )
    return TreeIndexer(config=config, fs=fs)


def format_summary(stats: WalkStats) -> str:
    """One-line summary of a finished walk."""
    return (
        f"indexed {stats.directories} directories, {stats.files} files, "
        f"{stats.links} links ({stats.broken} broken)"
    )


def format_run_event(record: dict[str, object]) -> str:
    """One-line description of a recorded run event."""
    status = "ok" if record.get("ok") else f"failed {record.get('error_code')}"
    line = (
        f"{record.get('run_id')} {record.get('timestamp')} {status}: "
        f"{record.get('source_root')} -> {record.get('destination_root')}"
    )
    metadata = record.get("metadata")
    stats = metadata.get("stats") if isinstance(metadata, dict) else None
    if isinstance(stats, dict):
        counters = {
            key: stats.get(key, 0) for key in ("directories", "files", "links", "broken")
        }
        line = f"{line}\n{format_summary(WalkStats(**counters))}"
    return line


def report(outcome: RunOutcome, verbosity: int, out_stream: TextIO, err_stream: TextIO) -> None:
    """Write the progress log and summary, or the failure, to the given streams."""
    if not outcome.ok:
        err_stream.write(f"tree-indexer: {outcome.error_code}: {outcome.message}\n")
        return
    if verbosity >= NORMAL:
        out_stream.write(outcome.log)
        out_stream.write("\n")
        out_stream.write(format_summary(outcome.stats))
        out_stream.write("\n")
    for name in outcome.stats.broken_names:
        err_stream.write(f"tree-indexer: broken entry: {display_name(name)}\n")


def main(
    argv: list[str] | None = None,
    out_stream: TextIO | None = None,
    err_stream: TextIO | None = None,
) -> int:
    """Entrypoint for the tree-indexer command."""
    out = out_stream or sys.stdout
    err = err_stream or sys.stderr
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        indexer = create_indexer(
            config_path=args.config,
            environ=dict(os.environ),
            cli_overrides=overrides_from_args(args),
        )
    except ValueError as exc:
        err.write(f"tree-indexer: INVALID_CONFIG: {exc}\n")
        return EXIT_USAGE
    if args.last_run:
        record = indexer.last_run()
        if record is None:
            out.write("tree-indexer: no recorded runs\n")
        else:
            out.write(format_run_event(record))
            out.write("\n")
        return EXIT_OK
    outcome = indexer.run()
    report(outcome, indexer.config.walk.verbosity, out, err)
    return outcome.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
