"""Selection history with time-decayed affinity scores.

Every pick is stored as a timestamp, globally and under the hash of the
query it was made with. A timestamp contributes ``weight * exp(-lambda * days)``
until it is older than MAX_AGE_DAYS; combined scores never exceed SCORE_CAP.

The whole store sits behind one ReadWriteLock. Loading can run on a worker
thread (``load_async``); readers that need history must wait on the future.
"""

from __future__ import annotations

import hashlib
import math
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import structlog

from glfind.config.constants import (
    DECAY_LAMBDA,
    GLOBAL_WEIGHT,
    MAX_AGE_DAYS,
    QUERY_HASH_BYTES,
    QUERY_WEIGHT,
    SCORE_CAP,
)
from glfind.core.errors import PersistenceError
from glfind.core.fileio import atomic_write_bytes
from glfind.core.locks import ReadWriteLock
from glfind.history.codec import HistoryDecodeError, HistoryState, decode, encode

logger = structlog.get_logger()

_SECONDS_PER_DAY = 86400.0


def utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_query(query: str) -> str:
    """Key for a query: lowercased, trimmed, whitespace collapsed, hashed."""
    normalized = " ".join(query.lower().split())
    return hashlib.sha256(normalized.encode("utf-8")).digest()[:QUERY_HASH_BYTES].hex()


def _decayed(stamps: list[datetime], weight: float, now: datetime) -> float:
    total = 0.0
    for ts in stamps:
        days = max((now - ts).total_seconds() / _SECONDS_PER_DAY, 0.0)
        if days > MAX_AGE_DAYS:
            continue
        total += weight * math.exp(-DECAY_LAMBDA * days)
    return total


def _capped(value: float) -> int:
    # Round half up; a lone pick fades to 0 after one half-life
    return min(math.floor(value + 0.5), SCORE_CAP)


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One item's history as shown by ``glf history show``."""

    path: str
    count: int
    last_used: datetime
    score: int


class AffinityStore:
    """Persisted selection history.

    Args:
        path: JSON file backing the store.
        now: Clock returning an aware UTC datetime. Injected in tests.
    """

    def __init__(self, path: Path, *, now: Callable[[], datetime] = utcnow) -> None:
        self._path = path
        self._now = now
        self._lock = ReadWriteLock()
        self._save_lock = threading.Lock()
        self._state = HistoryState()
        self._generation = 0
        self._saved_generation = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def dirty(self) -> bool:
        with self._lock.read():
            return self._generation != self._saved_generation

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read the file, prune expired timestamps and save if anything changed.

        Missing or unreadable history starts empty. A failed save after
        pruning is logged; the in-memory state stays dirty.
        """
        state = self._read_state()
        with self._lock.write():
            self._state = state
            self._generation += 1
            if not state.migrated:
                self._saved_generation = self._generation
        removed = self.cleanup_expired()
        if removed:
            logger.debug("history_expired_pruned", removed=removed)
        if self.dirty:
            try:
                self.save()
            except PersistenceError as e:
                logger.warning("history_save_failed", path=str(self._path), error=e.message)

    def load_async(self) -> Future[None]:
        """Run ``load`` on a worker thread; the future resolves when it finishes."""
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="glfind-history")
        try:
            return executor.submit(self.load)
        finally:
            executor.shutdown(wait=False)

    def _read_state(self) -> HistoryState:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return HistoryState()
        except OSError as e:
            logger.warning("history_corrupt", path=str(self._path), error=str(e))
            return HistoryState()
        try:
            fmt, state = decode(raw)
        except HistoryDecodeError as e:
            err = PersistenceError.corrupt(str(self._path), str(e))
            logger.warning("history_corrupt", path=str(self._path), error=err.message)
            return HistoryState()
        if state.migrated:
            logger.info("history_migrated", path=str(self._path), source_format=fmt)
        return state

    # ------------------------------------------------------------------
    # Mutation and persistence
    # ------------------------------------------------------------------

    def mutate(self, fn: Callable[[HistoryState], None]) -> None:
        """Apply ``fn`` to the state under the write lock and mark it dirty."""
        with self._lock.write():
            fn(self._state)
            self._generation += 1

    def record_selection(self, item_id: str, query: str | None = None) -> None:
        """Record that ``item_id`` was picked, optionally under ``query``."""
        ts = self._now()
        qhash = normalize_query(query) if query and query.strip() else None

        def _record(state: HistoryState) -> None:
            state.selections.setdefault(item_id, []).append(ts)
            if qhash is not None:
                state.query_selections.setdefault(qhash, {}).setdefault(item_id, []).append(ts)

        self.mutate(_record)

    def clear(self) -> None:
        def _clear(state: HistoryState) -> None:
            state.selections.clear()
            state.query_selections.clear()

        self.mutate(_clear)

    def save(self) -> bool:
        """Write the store if it changed since the last save.

        Returns:
            True if the file was written.

        Raises:
            PersistenceError: If the write failed. The previous file is intact.
        """
        with self._save_lock:
            with self._lock.read():
                if self._generation == self._saved_generation:
                    return False
                generation = self._generation
                payload = encode(self._state)
            atomic_write_bytes(self._path, payload)
            with self._lock.write():
                self._saved_generation = max(self._saved_generation, generation)
        logger.debug("history_saved", path=str(self._path), bytes=len(payload))
        return True

    def cleanup_expired(self) -> int:
        """Drop timestamps older than MAX_AGE_DAYS. Returns how many were dropped."""
        now = self._now()
        with self._lock.write():
            removed = _prune(self._state.selections, now)
            for qhash in list(self._state.query_selections):
                bucket = self._state.query_selections[qhash]
                removed += _prune(bucket, now)
                if not bucket:
                    del self._state.query_selections[qhash]
            if removed:
                self._generation += 1
        return removed

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def score_global(self, item_id: str) -> int:
        now = self._now()
        with self._lock.read():
            return _capped(_decayed(self._state.selections.get(item_id, []), GLOBAL_WEIGHT, now))

    def score_for_query(self, query: str, item_id: str) -> int:
        """Global score plus the boost earned under this exact (normalized) query."""
        now = self._now()
        qhash = normalize_query(query)
        with self._lock.read():
            score = _decayed(self._state.selections.get(item_id, []), GLOBAL_WEIGHT, now)
            bucket = self._state.query_selections.get(qhash, {})
            score += _decayed(bucket.get(item_id, []), QUERY_WEIGHT, now)
        return _capped(score)

    def all_scores(self) -> dict[str, int]:
        """Nonzero global scores for every item."""
        now = self._now()
        with self._lock.read():
            scores = {
                item: _capped(_decayed(stamps, GLOBAL_WEIGHT, now))
                for item, stamps in self._state.selections.items()
            }
        return {item: score for item, score in scores.items() if score > 0}

    def all_scores_for_query(self, query: str | None) -> dict[str, int]:
        """Nonzero combined scores under ``query``; a blank query gives global scores."""
        if not query or not query.strip():
            return self.all_scores()
        now = self._now()
        qhash = normalize_query(query)
        with self._lock.read():
            raw = {
                item: _decayed(stamps, GLOBAL_WEIGHT, now)
                for item, stamps in self._state.selections.items()
            }
            for item, stamps in self._state.query_selections.get(qhash, {}).items():
                raw[item] = raw.get(item, 0.0) + _decayed(stamps, QUERY_WEIGHT, now)
        scores = {item: _capped(value) for item, value in raw.items()}
        return {item: score for item, score in scores.items() if score > 0}

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def entries(self) -> list[HistoryEntry]:
        """Per-item history, highest score first, then by path."""
        now = self._now()
        with self._lock.read():
            out = [
                HistoryEntry(
                    path=item,
                    count=len(stamps),
                    last_used=max(stamps),
                    score=_capped(_decayed(stamps, GLOBAL_WEIGHT, now)),
                )
                for item, stamps in self._state.selections.items()
                if stamps
            ]
        out.sort(key=lambda e: (-e.score, e.path))
        return out

    def stats(self) -> tuple[int, int]:
        """``(total_selections, unique_items)``."""
        with self._lock.read():
            total = sum(len(stamps) for stamps in self._state.selections.values())
            return total, len(self._state.selections)


def _prune(items: dict[str, list[datetime]], now: datetime) -> int:
    removed = 0
    for item in list(items):
        stamps = items[item]
        kept = [ts for ts in stamps if (now - ts).total_seconds() / _SECONDS_PER_DAY <= MAX_AGE_DAYS]
        removed += len(stamps) - len(kept)
        if kept:
            items[item] = kept
        else:
            del items[item]
    return removed
