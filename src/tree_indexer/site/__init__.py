"""Destination preparation ahead of the walk."""

from .prepare import DestinationNotCleanError, matches_any, prepare_destination, stage_assets

__all__ = ["DestinationNotCleanError", "matches_any", "prepare_destination", "stage_assets"]
