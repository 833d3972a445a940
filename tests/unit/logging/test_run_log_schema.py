from __future__ import annotations

import json
from pathlib import Path

from tree_indexer.logging import JsonlRunLogger, RunEvent, new_run_id, utc_timestamp


def _event(run_id: str, ok: bool = True) -> RunEvent:
    return RunEvent(
        timestamp=utc_timestamp(),
        run_id=run_id,
        ok=ok,
        error_code=None if ok else "UNSUPPORTED_ENTRY",
        source_root="/src/home",
        destination_root="/site",
        metadata={"stats": {"directories": 1}},
    )


def test_run_log_writes_one_json_object_per_line(tmp_path: Path) -> None:
    logger = JsonlRunLogger(tmp_path / "data" / "runs.jsonl")
    logger.append(_event("run-1"))
    logger.append(_event("run-2", ok=False))

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    event = json.loads(lines[1])
    assert set(event.keys()) == {
        "destination_root",
        "error_code",
        "metadata",
        "ok",
        "run_id",
        "source_root",
        "timestamp",
    }
    assert event["run_id"] == "run-2"
    assert event["ok"] is False
    assert event["error_code"] == "UNSUPPORTED_ENTRY"
    assert event["timestamp"].endswith("Z")


def test_run_log_read_is_bounded_and_skips_garbage(tmp_path: Path) -> None:
    logger = JsonlRunLogger(tmp_path / "runs.jsonl")
    for index in range(5):
        logger.append(_event(f"run-{index}"))
    with logger.path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n\n")

    recent = logger.read(limit=2)

    assert [event["run_id"] for event in recent] == ["run-3", "run-4"]
    assert logger.read(limit=0) == []


def test_missing_run_log_reads_empty(tmp_path: Path) -> None:
    assert JsonlRunLogger(tmp_path / "runs.jsonl").read() == []


def test_run_ids_are_unique() -> None:
    assert new_run_id() != new_run_id()
    assert new_run_id().startswith("run-")
