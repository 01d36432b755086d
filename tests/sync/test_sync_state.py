"""Tests for persisted sync timestamps."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from glfind.core.errors import PersistenceError
from glfind.sync.state import SyncState, SyncStateStore, format_timestamp


@pytest.fixture
def state_store(tmp_path: Path) -> SyncStateStore:
    return SyncStateStore(tmp_path / ".last_sync_time", tmp_path / ".last_full_sync_time")


class TestSyncStateStore:
    def test_missing_files_are_zero(self, state_store: SyncStateStore) -> None:
        assert state_store.load() == SyncState()

    def test_timestamps_written_independently(self, state_store: SyncStateStore) -> None:
        # Given
        ts = datetime(2026, 3, 1, 12, 30, 15, 999, tzinfo=UTC)

        # When
        state_store.save_last_sync(ts)

        # Then
        state = state_store.load()
        assert state.last_sync == ts.replace(microsecond=0)
        assert state.last_full_sync is None
        assert state_store.last_sync_path.read_text() == "2026-03-01T12:30:15Z\n"

    def test_garbage_is_corrupt(self, state_store: SyncStateStore) -> None:
        state_store.last_full_sync_path.write_text("yesterday-ish")
        with pytest.raises(PersistenceError):
            state_store.load()

    def test_format_is_rfc3339_utc(self) -> None:
        assert format_timestamp(datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)) == "2026-01-02T03:04:05Z"
