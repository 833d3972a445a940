"""Progress and run logging utilities."""

from .progress import DETAILED, NORMAL, QUIET, LogContext, describe_error, display_name
from .runlog import JsonlRunLogger, RunEvent, new_run_id, utc_timestamp

__all__ = [
    "DETAILED",
    "NORMAL",
    "QUIET",
    "JsonlRunLogger",
    "LogContext",
    "RunEvent",
    "describe_error",
    "display_name",
    "new_run_id",
    "utc_timestamp",
]
