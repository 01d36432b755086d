"""Wiring of stores, index, remote and sync from a resolved config."""

from __future__ import annotations

from concurrent.futures import Future
from datetime import timedelta
from pathlib import Path

import structlog

from glfind.config.loader import require_remote
from glfind.config.models import GlfConfig
from glfind.history.store import AffinityStore
from glfind.index.guard import IndexVersionGuard, OpenedIndex
from glfind.remote.base import RemoteSource
from glfind.remote.gitlab import GitLabClient
from glfind.search.models import CombinedMatch, SearchOptions
from glfind.search.ranker import Ranker, apply_options
from glfind.sync.controller import FreshnessController
from glfind.sync.fetcher import ParallelFetcher
from glfind.sync.state import SyncStateStore

logger = structlog.get_logger()


class AppContext:
    """Lazily built components for one CLI invocation.

    History loading starts immediately on a worker thread; everything that
    reads scores waits for it first. The remote client is only created when
    a sync needs it, so offline searches never require a token.
    """

    def __init__(
        self,
        config: GlfConfig,
        *,
        config_path: Path | None = None,
        remote: RemoteSource | None = None,
    ) -> None:
        self.config = config
        self.config_path = config_path
        self.history = AffinityStore(config.cache.history_path)
        self._history_loaded: Future[None] = self.history.load_async()
        self._remote = remote
        self._opened: OpenedIndex | None = None
        self._controller: FreshnessController | None = None

    # Components ---------------------------------------------------------

    def opened_index(self) -> OpenedIndex:
        if self._opened is None:
            self._opened = IndexVersionGuard(self.config.cache.index_path).open()
        return self._opened

    def remote(self) -> RemoteSource:
        if self._remote is None:
            require_remote(self.config)
            gl = self.config.gitlab
            self._remote = GitLabClient(
                gl.url, gl.token, timeout=gl.timeout_sec, max_concurrency=gl.max_concurrency
            )
        return self._remote

    def controller(self) -> FreshnessController:
        if self._controller is None:
            gl = self.config.gitlab
            cache = self.config.cache
            remote = self.remote()
            self._controller = FreshnessController(
                remote,
                ParallelFetcher(remote, per_page=gl.per_page, max_concurrency=gl.max_concurrency),
                self.opened_index().index,
                SyncStateStore(cache.last_sync_path, cache.last_full_sync_path),
                full_sync_interval=timedelta(days=self.config.sync.full_sync_interval_days),
            )
        return self._controller

    def wait_for_history(self) -> AffinityStore:
        self._history_loaded.result()
        return self.history

    # Operations ----------------------------------------------------------

    def needs_full_sync(self) -> bool:
        """True when the index was just created or rebuilt, or holds no projects."""
        opened = self.opened_index()
        return opened.needs_full_sync or opened.index.count() == 0

    def search(self, query: str, options: SearchOptions) -> list[CombinedMatch]:
        """Rank the cached catalog for ``query`` and apply visibility options.

        Raises:
            SearchIndexError: If the index cannot be queried.
        """
        index = self.opened_index().index
        history = self.wait_for_history()
        ranker = Ranker(
            index,
            starred_bonus=self.config.search.starred_bonus,
            max_hits=self.config.search.max_hits,
        )
        matches = ranker.rank(query, index.all_projects(), history.all_scores_for_query(query))
        visible = apply_options(matches, options, self.config.is_excluded)
        logger.debug("search_ranked", query=query, ranked=len(matches), shown=len(visible))
        return visible

    def record(self, project_path: str, query: str | None = None) -> None:
        """Record a pick and persist history."""
        history = self.wait_for_history()
        history.record_selection(project_path, query)
        history.save()

    def close(self) -> None:
        if isinstance(self._remote, GitLabClient):
            self._remote.close()
