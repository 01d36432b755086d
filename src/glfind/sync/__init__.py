"""Keeping the local index fresh."""

from glfind.sync.controller import (
    FreshnessController,
    SyncDecision,
    SyncMode,
    SyncResult,
    decide_sync_mode,
    refresh_in_background,
)
from glfind.sync.fetcher import ParallelFetcher
from glfind.sync.state import SyncState, SyncStateStore

__all__ = [
    "FreshnessController",
    "ParallelFetcher",
    "SyncDecision",
    "SyncMode",
    "SyncResult",
    "SyncState",
    "SyncStateStore",
    "decide_sync_mode",
    "refresh_in_background",
]
