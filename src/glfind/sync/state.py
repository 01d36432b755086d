"""Persisted sync timestamps.

Two files, each holding one RFC3339 UTC timestamp. They are written
independently: every successful sync moves ``last_sync``; only Full syncs
move ``last_full_sync``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from glfind.core.errors import PersistenceError
from glfind.core.fileio import atomic_write_text


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    parsed = datetime.fromisoformat(text.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True, slots=True)
class SyncState:
    """``None`` means never (the zero value)."""

    last_sync: datetime | None = None
    last_full_sync: datetime | None = None


class SyncStateStore:
    def __init__(self, last_sync_path: Path, last_full_sync_path: Path) -> None:
        self.last_sync_path = last_sync_path
        self.last_full_sync_path = last_full_sync_path

    def load(self) -> SyncState:
        """Read both timestamps.

        Raises:
            PersistenceError: ``corrupt`` if a file exists but cannot be read
                or parsed.
        """
        return SyncState(
            last_sync=self._read(self.last_sync_path),
            last_full_sync=self._read(self.last_full_sync_path),
        )

    def _read(self, path: Path) -> datetime | None:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError.corrupt(str(path), str(e)) from e
        if not text.strip():
            return None
        try:
            return parse_timestamp(text)
        except ValueError as e:
            raise PersistenceError.corrupt(str(path), f"bad timestamp {text.strip()!r}") from e

    def save_last_sync(self, ts: datetime) -> None:
        atomic_write_text(self.last_sync_path, format_timestamp(ts) + "\n")

    def save_last_full_sync(self, ts: datetime) -> None:
        atomic_write_text(self.last_full_sync_path, format_timestamp(ts) + "\n")
