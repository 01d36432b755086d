"""Freshness policy: decides Full vs Incremental and runs the sync."""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable
from concurrent.futures import Future, wait
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

import structlog

from glfind.core.errors import PersistenceError
from glfind.core.logging import clear_operation_id, set_operation_id
from glfind.index.lexical import ProjectIndex
from glfind.projects.models import Project, ProjectFilter
from glfind.remote.base import FlagName, RemoteSource
from glfind.sync.fetcher import ParallelFetcher
from glfind.sync.state import SyncState, SyncStateStore

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(UTC)


class SyncMode(enum.Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass(frozen=True, slots=True)
class SyncDecision:
    mode: SyncMode
    reason: str


def decide_sync_mode(
    state: SyncState | None,
    now: datetime,
    full_sync_interval: timedelta,
    *,
    force_full: bool = False,
) -> SyncDecision:
    """Pick the sync mode.

    ``state`` is None when the timestamps could not be loaded. A Full sync is
    due once the last one is strictly older than ``full_sync_interval``; that
    is the only way remotely deleted projects leave the cache.
    """
    if force_full:
        return SyncDecision(SyncMode.FULL, "forced")
    if state is None:
        return SyncDecision(SyncMode.FULL, "state_unreadable")
    if state.last_sync is None:
        return SyncDecision(SyncMode.FULL, "first_run")
    if state.last_full_sync is not None and now - state.last_full_sync > full_sync_interval:
        return SyncDecision(SyncMode.FULL, "full_sync_due")
    return SyncDecision(SyncMode.INCREMENTAL, "recent_sync")


@dataclass(frozen=True, slots=True)
class SyncResult:
    mode: SyncMode
    reason: str
    started_at: datetime
    fetched: int = 0
    indexed: int = 0
    # Full sync that returned nothing; index and timestamps left alone
    skipped: bool = False


class FreshnessController:
    """Keeps the local index in step with the remote catalog.

    A sync fetches starred and member flag sets, then every (Full) or every
    changed (Incremental) project, and only then touches the index: a fetch
    failure leaves the cache and timestamps exactly as they were. Full syncs
    replace the catalog in one commit; incremental syncs upsert by path.
    ``last_sync`` records the sync start so changes made mid-fetch are picked
    up next time.
    """

    def __init__(
        self,
        remote: RemoteSource,
        fetcher: ParallelFetcher,
        index: ProjectIndex,
        state_store: SyncStateStore,
        *,
        full_sync_interval: timedelta = timedelta(days=7),
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._remote = remote
        self._fetcher = fetcher
        self._index = index
        self._state_store = state_store
        self.full_sync_interval = full_sync_interval
        self._now = now
        self._sync_lock = threading.Lock()

    def load_state(self) -> SyncState | None:
        try:
            return self._state_store.load()
        except PersistenceError as e:
            logger.warning("sync_state_corrupt", error=e.message)
            return None

    def decide(self, *, force_full: bool = False) -> SyncDecision:
        return decide_sync_mode(
            self.load_state(), self._now(), self.full_sync_interval, force_full=force_full
        )

    def sync(self, *, force_full: bool = False) -> SyncResult:
        """Run one sync. Concurrent calls are serialized.

        Raises:
            FetchError: The remote fetch failed; nothing was written.
            SearchIndexError: The index write failed; timestamps not moved.
            PersistenceError: Timestamps could not be written.
        """
        with self._sync_lock:
            set_operation_id()
            try:
                return self._sync(force_full)
            finally:
                clear_operation_id()

    def _sync(self, force_full: bool) -> SyncResult:
        started = self._now()
        state = self.load_state()
        decision = decide_sync_mode(state, started, self.full_sync_interval, force_full=force_full)
        logger.info("sync_mode_decided", mode=decision.mode.value, reason=decision.reason)

        starred = self._flag_set("starred")
        member = self._flag_set("membership")

        changed_since = None
        if decision.mode is SyncMode.INCREMENTAL and state is not None:
            changed_since = state.last_sync
        fetched = self._fetcher.fetch_all(ProjectFilter(changed_since=changed_since))
        projects = [_with_flags(p, starred, member) for p in fetched]

        if decision.mode is SyncMode.FULL:
            if not projects:
                logger.warning("full_sync_empty", hint="check token scope and permissions")
                return SyncResult(decision.mode, decision.reason, started, skipped=True)
            indexed = self._index.replace_all(projects)
        else:
            indexed = self._index.add_batch(projects) if projects else 0

        self._state_store.save_last_sync(started)
        if decision.mode is SyncMode.FULL:
            self._state_store.save_last_full_sync(started)

        logger.info(
            "sync_completed",
            mode=decision.mode.value,
            fetched=len(fetched),
            indexed=indexed,
            starred=len(starred),
            member=len(member),
        )
        return SyncResult(decision.mode, decision.reason, started, len(fetched), indexed)

    def _flag_set(self, flag: FlagName) -> set[str]:
        try:
            return self._remote.fetch_flag_set(flag)
        except Exception as e:
            # A missing flag set only costs ranking hints; keep syncing
            logger.warning("flag_set_fetch_failed", flag=flag, error=str(e))
            return set()


def _with_flags(project: Project, starred: set[str], member: set[str]) -> Project:
    return replace(project, starred=project.path in starred, member=project.path in member)


def refresh_in_background(
    controller: FreshnessController,
    budget_sec: float,
    *,
    force_full: bool = False,
) -> Future[SyncResult]:
    """Start a sync on a daemon thread and wait for it at most ``budget_sec``.

    The sync keeps running past the budget. Failures are logged, and are
    also available from the returned future.
    """
    future: Future[SyncResult] = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(controller.sync(force_full=force_full))
        except Exception as e:
            logger.warning("background_sync_failed", error=str(e))
            future.set_exception(e)

    threading.Thread(target=_run, name="glfind-refresh", daemon=True).start()
    done, _ = wait([future], timeout=budget_sec)
    if not done:
        logger.info("background_sync_over_budget", budget_sec=budget_sec)
    return future
